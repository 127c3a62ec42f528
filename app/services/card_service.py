"""
Card service — issuance, holder-name updates, deletion and reads.

When a card is issued:
  1. The customer must exist
  2. Issue date is today (UTC) and the card expires CARD_TERM_YEARS later
  3. The holder name is copied from the customer's current name. It is a
     point-in-time copy — renaming the customer later does not touch it.
  4. Limits are copied from settings onto the card
  5. Counters start at zero for today's accounting day
  6. A unique card number is assigned and the card is inserted

The only field an update can change is the holder name. Balance, counters,
limits and type belong to the posting engine or are fixed at issuance.
"""

import uuid
from datetime import date, datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    AmountOutOfRangeError,
    CardNotFoundError,
    CustomerNotFoundError,
    InvalidAmountError,
)
from app.models.card import MAX_BALANCE_CENTS, CreditCard
from app.repositories import LedgerStore
from app.services.card_number_service import assign_unique_card_number

logger = structlog.get_logger(__name__)


def _add_years(start: date, years: int) -> date:
    """Shift a date by whole years; Feb 29 falls back to Feb 28."""
    try:
        return start.replace(year=start.year + years)
    except ValueError:
        return start.replace(year=start.year + years, day=28)


async def create_card(
    db: AsyncSession,
    customer_id: uuid.UUID,
    initial_balance_cents: int = 0,
    card_type: str = "VISA",
    is_active: bool = True,
) -> CreditCard:
    """
    Issue a new credit card to a customer.

    Args:
        db: Database session.
        customer_id: The owner of the new card.
        initial_balance_cents: Opening balance, in cents (must be >= 0).
        card_type: Free-form card type tag.
        is_active: Whether the card starts active.

    Returns:
        The persisted CreditCard.

    Raises:
        CustomerNotFoundError: If the customer doesn't exist.
        InvalidAmountError: If the opening balance is negative.
        AmountOutOfRangeError: If the opening balance is above MAX_BALANCE_CENTS.
        CardNumberExhaustedError: If no unique card number could be found.
    """
    store = LedgerStore(db)

    customer = await store.find_customer_by_id(customer_id)
    if customer is None:
        raise CustomerNotFoundError(customer_id)

    if initial_balance_cents < 0:
        raise InvalidAmountError(initial_balance_cents)
    if initial_balance_cents > MAX_BALANCE_CENTS:
        raise AmountOutOfRangeError(initial_balance_cents)

    today = datetime.now(timezone.utc).date()
    card = CreditCard(
        customer_id=customer.id,
        card_holder_name=customer.name,
        card_type=card_type,
        is_active=is_active,
        issue_date=today,
        expiry_date=_add_years(today, settings.CARD_TERM_YEARS),
        balance_cents=initial_balance_cents,
        max_withdrawal_cents=settings.CARD_MAX_WITHDRAWAL_CENTS,
        daily_debit_limit_cents=settings.CARD_DAILY_DEBIT_LIMIT_CENTS,
        max_credit_cents=settings.CARD_MAX_CREDIT_CENTS,
        daily_credit_limit_cents=settings.CARD_DAILY_CREDIT_LIMIT_CENTS,
        daily_debited_cents=0,
        daily_credited_cents=0,
        accounting_day=today,
    )
    await assign_unique_card_number(db, card)

    logger.info(
        "card_created",
        customer_id=str(customer_id),
        card_id=str(card.id),
        card_number_last_four=card.card_number[-4:],
        card_type=card_type,
    )
    return card


async def update_card(
    db: AsyncSession,
    card_id: uuid.UUID,
    card_holder_name: str,
) -> CreditCard:
    """
    Change the holder name printed on a card.

    Raises:
        CardNotFoundError: If the card doesn't exist.
    """
    store = LedgerStore(db)

    card = await store.find_card_by_id(card_id)
    if card is None:
        raise CardNotFoundError()

    card.card_holder_name = card_holder_name
    await store.save(card)

    logger.info("card_updated", card_id=str(card_id))
    return card


async def delete_card(db: AsyncSession, card_id: uuid.UUID) -> uuid.UUID:
    """
    Delete a card and every transaction posted to it.

    Returns:
        The id of the deleted card.

    Raises:
        CardNotFoundError: If the card doesn't exist.
    """
    store = LedgerStore(db)

    card = await store.find_card_by_id(card_id)
    if card is None:
        raise CardNotFoundError()

    await store.delete_card(card)

    logger.warning(
        "card_deleted",
        card_id=str(card_id),
        customer_id=str(card.customer_id),
    )
    return card_id


async def get_card(db: AsyncSession, card_id: uuid.UUID) -> CreditCard:
    """Raises CardNotFoundError if the card doesn't exist."""
    card = await LedgerStore(db).find_card_by_id(card_id)
    if card is None:
        raise CardNotFoundError()
    return card


async def get_cards_for_customer(
    db: AsyncSession,
    customer_id: uuid.UUID,
) -> list[CreditCard]:
    """
    List every card a customer owns, oldest first.

    Raises:
        CustomerNotFoundError: If the customer doesn't exist.
    """
    store = LedgerStore(db)
    if await store.find_customer_by_id(customer_id) is None:
        raise CustomerNotFoundError(customer_id)
    return await store.find_cards_by_customer(customer_id)
