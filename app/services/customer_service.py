"""
Customer service — profile reads, updates, deletion and transaction listings.

Customers are created through registration (see auth_service). Everything
else a customer can do to their own profile lives here, along with the
read-only listings that flatten a customer's (or a card's) transactions.

Deleting a customer removes their cards and every transaction posted to
those cards. There is no soft delete.
"""

import uuid

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import CardNotFoundError, CustomerNotFoundError, DuplicateUsernameError
from app.models.card import CreditCard
from app.models.customer import Customer
from app.models.transaction import Transaction
from app.repositories import LedgerStore
from app.security import hash_password

logger = structlog.get_logger(__name__)


async def get_customer(db: AsyncSession, customer_id: uuid.UUID) -> Customer:
    """Raises CustomerNotFoundError if the customer doesn't exist."""
    customer = await LedgerStore(db).find_customer_by_id(customer_id)
    if customer is None:
        raise CustomerNotFoundError(customer_id)
    return customer


async def get_all_customers(db: AsyncSession) -> list[Customer]:
    return await LedgerStore(db).find_all_customers()


async def get_customer_with_cards(
    db: AsyncSession,
    customer_id: uuid.UUID,
) -> tuple[Customer, list[CreditCard]]:
    """
    Load a customer together with the cards they own.

    Returns:
        Tuple of (Customer, list of CreditCard).

    Raises:
        CustomerNotFoundError: If the customer doesn't exist.
    """
    store = LedgerStore(db)
    customer = await store.find_customer_by_id(customer_id)
    if customer is None:
        raise CustomerNotFoundError(customer_id)
    cards = await store.find_cards_by_customer(customer_id)
    return customer, cards


async def update_customer(
    db: AsyncSession,
    customer_id: uuid.UUID,
    name: str | None = None,
    phone_number: str | None = None,
    email: str | None = None,
    username: str | None = None,
    password: str | None = None,
) -> Customer:
    """
    Update a customer's profile. Only the fields passed (not None) change.

    Renaming a customer does not touch the holder name printed on cards
    they already own.

    Args:
        db: Database session.
        customer_id: The customer to update.
        name: New display name.
        phone_number: New phone number.
        email: New email address.
        username: New login name (must not belong to anyone else).
        password: New plaintext password (hashed before storage).

    Returns:
        The updated Customer.

    Raises:
        CustomerNotFoundError: If the customer doesn't exist.
        DuplicateUsernameError: If the new username is taken.
    """
    store = LedgerStore(db)

    customer = await store.find_customer_by_id(customer_id)
    if customer is None:
        raise CustomerNotFoundError(customer_id)

    if username is not None and username != customer.username:
        if await store.find_customer_by_username(username) is not None:
            raise DuplicateUsernameError(username)
        customer.username = username

    if name is not None:
        customer.name = name
    if phone_number is not None:
        customer.phone_number = phone_number
    if email is not None:
        customer.email = email
    if password is not None:
        customer.hashed_password = hash_password(password)

    try:
        await store.save(customer)
    except IntegrityError:
        await store.rollback()
        if username is None:
            raise
        # Taken by a concurrent registration or rename since the check above
        raise DuplicateUsernameError(username)

    # Field names only, values may be personal data
    changed = [
        field
        for field, value in (
            ("name", name),
            ("phone_number", phone_number),
            ("email", email),
            ("username", username),
            ("password", password),
        )
        if value is not None
    ]
    logger.info("customer_updated", customer_id=str(customer_id), fields=changed)
    return customer


async def delete_customer(db: AsyncSession, customer_id: uuid.UUID) -> None:
    """
    Delete a customer, their cards, and all transactions on those cards.

    Raises:
        CustomerNotFoundError: If the customer doesn't exist.
    """
    store = LedgerStore(db)

    customer = await store.find_customer_by_id(customer_id)
    if customer is None:
        raise CustomerNotFoundError(customer_id)

    await store.delete_customer(customer)
    logger.warning("customer_deleted", customer_id=str(customer_id))


async def list_transactions_for_customer(
    db: AsyncSession,
    customer_id: uuid.UUID,
    type_filter: str | None = None,
) -> list[Transaction]:
    """
    Flatten the transactions of every card the customer owns.

    Args:
        db: Database session.
        customer_id: The customer whose history to list.
        type_filter: Optional "CREDIT" or "DEBIT", matched case-insensitively.

    Returns:
        Transactions, newest first.

    Raises:
        CustomerNotFoundError: If the customer doesn't exist.
    """
    store = LedgerStore(db)
    if await store.find_customer_by_id(customer_id) is None:
        raise CustomerNotFoundError(customer_id)

    cards = await store.find_cards_by_customer(customer_id)
    return await store.find_transactions_for_cards(
        [card.id for card in cards], type_filter
    )


async def list_transactions_for_card(
    db: AsyncSession,
    card_id: uuid.UUID,
    type_filter: str | None = None,
) -> list[Transaction]:
    """
    List one card's transactions, newest first.

    Raises:
        CardNotFoundError: If the card doesn't exist.
    """
    store = LedgerStore(db)
    if await store.find_card_by_id(card_id) is None:
        raise CardNotFoundError()
    return await store.find_transactions_for_cards([card_id], type_filter)
