"""
Transaction service — the posting engine.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. It is the only code that
changes a card's balance or daily counters, and every change it makes is
paired with exactly one Transaction row.

A posting (debit or credit) runs as:
  1. Resolve the card by (card_number, customer_id). A card number that
     exists under a different customer is "not found" — the ownership
     check and the existence check are the same lookup.
  2. Validate the amount against the snapshot just read, stopping at the
     first broken rule.
  3. Write the new balance and counters with a compare-and-set on the
     card's version, then insert the Transaction.

Concurrency:
  Validation and mutation must be indivisible per card, or two postings
  could both pass their checks against the same stale balance. The card
  row is read with SELECT ... FOR UPDATE, which serializes postings on
  PostgreSQL. Backends without row locks (SQLite) fall through to the
  compare-and-set: if another posting bumped the version since our read,
  the UPDATE matches zero rows, and we re-read and re-validate against the
  fresh state. Only this conflict is retried, never a business-rule
  failure. Postings against different cards never touch each other's rows.

Atomicity:
  Nothing is written until validation has passed, so a rejected posting
  leaves balance, counters, version and transaction history untouched.
  The card update and the Transaction insert share the caller's database
  transaction.

Daily counters:
  Counters belong to the card's accounting_day. With
  DAILY_LIMIT_RESET_ENABLED, a posting on a later UTC day validates
  against zeroed counters and stamps the new day as part of its own
  compare-and-set write, so the reset only lands together with a
  successful posting.
"""

import uuid
from datetime import date, datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    AmountOutOfRangeError,
    CardNotFoundError,
    CreditLimitExceededError,
    DailyCreditLimitExceededError,
    DailyDebitLimitExceededError,
    InsufficientBalanceError,
    InvalidAmountError,
    LedgerContentionError,
    WithdrawalLimitExceededError,
)
from app.models.card import MAX_BALANCE_CENTS, CreditCard
from app.models.transaction import Transaction, TransactionType
from app.repositories import LedgerStore

logger = structlog.get_logger(__name__)


def current_accounting_day() -> date:
    return datetime.now(timezone.utc).date()


def format_cents(amount_cents: int) -> str:
    """Render cents as major units with two decimals, e.g. 1250 -> "12.50"."""
    return f"{amount_cents // 100}.{amount_cents % 100:02d}"


def _counters_for(card: CreditCard, today: date) -> tuple[int, int, date]:
    """
    Return (debited, credited, day) that a posting made today should
    validate against and write back.
    """
    if settings.DAILY_LIMIT_RESET_ENABLED and card.accounting_day < today:
        return 0, 0, today
    return card.daily_debited_cents, card.daily_credited_cents, card.accounting_day


def _check_debit(card: CreditCard, amount_cents: int, debited_today: int) -> None:
    if amount_cents > card.balance_cents:
        raise InsufficientBalanceError(amount_cents, card.card_number)
    if amount_cents > card.max_withdrawal_cents:
        raise WithdrawalLimitExceededError(amount_cents, card.card_number)
    if debited_today + amount_cents > card.daily_debit_limit_cents:
        raise DailyDebitLimitExceededError(amount_cents, card.card_number)


def _check_credit(card: CreditCard, amount_cents: int, credited_today: int) -> None:
    if amount_cents > card.max_credit_cents:
        raise CreditLimitExceededError(amount_cents, card.card_number)
    if credited_today + amount_cents > card.daily_credit_limit_cents:
        raise DailyCreditLimitExceededError(amount_cents, card.card_number)
    if card.balance_cents + amount_cents > MAX_BALANCE_CENTS:
        raise AmountOutOfRangeError(amount_cents, card.card_number)


async def _post(
    db: AsyncSession,
    customer_id: uuid.UUID,
    card_number: str,
    amount_cents: int,
    txn_type: TransactionType,
) -> CreditCard:
    """Validate-and-apply one posting, retrying only on lost compare-and-set."""
    if amount_cents <= 0:
        raise InvalidAmountError(amount_cents, card_number)

    store = LedgerStore(db)
    attempts = settings.POSTING_MAX_RETRIES

    for attempt in range(1, attempts + 1):
        card = await store.find_card_by_number_and_customer(
            card_number, customer_id, for_update=True
        )
        if card is None:
            raise CardNotFoundError.for_customer()

        debited, credited, day = _counters_for(card, current_accounting_day())

        if txn_type is TransactionType.DEBIT:
            _check_debit(card, amount_cents, debited)
            values = {
                "balance_cents": card.balance_cents - amount_cents,
                "daily_debited_cents": debited + amount_cents,
                "daily_credited_cents": credited,
                "accounting_day": day,
            }
        else:
            _check_credit(card, amount_cents, credited)
            values = {
                "balance_cents": card.balance_cents + amount_cents,
                "daily_debited_cents": debited,
                "daily_credited_cents": credited + amount_cents,
                "accounting_day": day,
            }

        if await store.compare_and_set_card(card, **values):
            break

        logger.warning(
            "posting_conflict",
            card_number_last_four=card_number[-4:],
            attempt=attempt,
        )
    else:
        raise LedgerContentionError(attempts)

    verb = "Debited" if txn_type is TransactionType.DEBIT else "Credited"
    txn = Transaction(
        type=txn_type.value,
        amount_cents=amount_cents,
        card_type=card.card_type,
        description=f"{verb} {format_cents(amount_cents)}",
        card_id=card.id,
    )
    await store.save(txn)

    logger.info(
        "card_debited" if txn_type is TransactionType.DEBIT else "card_credited",
        customer_id=str(customer_id),
        card_number_last_four=card_number[-4:],
        amount_cents=amount_cents,
        balance_cents=card.balance_cents,
        transaction_id=str(txn.id),
    )
    return card


async def debit(
    db: AsyncSession,
    customer_id: uuid.UUID,
    card_number: str,
    amount_cents: int,
) -> CreditCard:
    """
    Take money off a card.

    Rules, checked in this order:
      - amount must not exceed the balance
      - amount must not exceed the card's max single withdrawal
      - today's debits plus amount must not exceed the daily debit cap

    Returns:
        The card with its updated balance and counters.

    Raises:
        InvalidAmountError: If the amount is not positive.
        CardNotFoundError: If the customer has no card with this number.
        InsufficientBalanceError, WithdrawalLimitExceededError,
        DailyDebitLimitExceededError: On the first broken rule.
        LedgerContentionError: If the card kept changing under us.
    """
    return await _post(db, customer_id, card_number, amount_cents, TransactionType.DEBIT)


async def credit(
    db: AsyncSession,
    customer_id: uuid.UUID,
    card_number: str,
    amount_cents: int,
) -> CreditCard:
    """
    Put money on a card.

    Rules, checked in this order:
      - amount must not exceed the card's max single credit
      - today's credits plus amount must not exceed the daily credit cap
      - the new balance must not exceed MAX_BALANCE_CENTS

    Raises:
        InvalidAmountError: If the amount is not positive.
        CardNotFoundError: If the customer has no card with this number.
        CreditLimitExceededError, DailyCreditLimitExceededError,
        AmountOutOfRangeError: On the first broken rule.
        LedgerContentionError: If the card kept changing under us.
    """
    return await _post(db, customer_id, card_number, amount_cents, TransactionType.CREDIT)
