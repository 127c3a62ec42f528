"""
Card number service — issues globally unique 16-digit card numbers.

Uniqueness is owned by the database: credit_cards.card_number carries a
UNIQUE constraint, and a number only counts as issued once the INSERT that
uses it has succeeded. The existence check before the INSERT just avoids a
pointless round trip when a number is visibly taken; it cannot protect
against two requests picking the same number at the same time. That race
surfaces as an IntegrityError on flush, which rolls back and retries with a
fresh number.

Numbers are drawn with `secrets` rather than `random` so they can't be
predicted from earlier issuances.
"""

import secrets

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import CardNumberExhaustedError
from app.models.card import CreditCard
from app.repositories import LedgerStore

logger = structlog.get_logger(__name__)

_LOWEST = 10**15
_SPAN = 9 * 10**15


def generate_card_number() -> str:
    """Return a random 16-digit number with a non-zero first digit."""
    return str(_LOWEST + secrets.randbelow(_SPAN))


async def assign_unique_card_number(
    db: AsyncSession,
    card: CreditCard,
    max_attempts: int | None = None,
) -> str:
    """
    Give a new card an unused number and insert it.

    The card must not have been added to the session yet. On success the
    card is persisted (flushed) and its number is returned.

    Note: a conflicting INSERT rolls back the whole session transaction, so
    this should run before any other writes in the unit of work.

    Raises:
        CardNumberExhaustedError: If every attempt hit a number in use.
        ValueError: If max_attempts is less than 1.
    """
    store = LedgerStore(db)
    attempts = settings.CARD_NUMBER_MAX_ATTEMPTS if max_attempts is None else max_attempts
    if attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {attempts}")

    for attempt in range(1, attempts + 1):
        card.card_number = generate_card_number()

        if await store.card_number_exists(card.card_number):
            logger.warning(
                "card_number_collision",
                attempt=attempt,
                card_number_last_four=card.card_number[-4:],
            )
            continue

        try:
            await store.save(card)
        except IntegrityError:
            # Lost a race for this number
            await store.rollback()
            logger.warning(
                "card_number_conflict",
                attempt=attempt,
                card_number_last_four=card.card_number[-4:],
            )
            continue

        return card.card_number

    logger.error("card_number_exhausted", attempts=attempts)
    raise CardNumberExhaustedError(attempts)
