"""
LedgerStore — persistence for Customer, CreditCard and Transaction rows.

A thin wrapper around the request's AsyncSession. Services never build
queries themselves; they ask the store for aggregates by id, by owner or by
card number, and hand it objects to save or delete. Every write is flushed
immediately so the next read in the same unit of work sees it. Committing is
left to the session owner (get_db in the API).

Two writes need more than add-and-flush:

  compare_and_set_card()
    The only way postings change a card. The UPDATE is guarded by the
    `version` the caller read, so a posting validated against a stale
    snapshot changes nothing and reports False instead of overwriting a
    concurrent posting.

  delete_card() / delete_customer()
    Delete child rows explicitly before the parent. The foreign keys also
    declare ON DELETE CASCADE, but SQLite ignores that unless the
    foreign_keys pragma is on.
"""

import uuid
from typing import Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.card import CreditCard
from app.models.customer import Customer
from app.models.transaction import Transaction


class LedgerStore:
    """Repository over one AsyncSession."""

    def __init__(self, session: AsyncSession):
        self._session = session

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    async def find_customer_by_id(self, customer_id: uuid.UUID) -> Customer | None:
        result = await self._session.execute(
            select(Customer).where(Customer.id == customer_id)
        )
        return result.scalar_one_or_none()

    async def find_customer_by_username(self, username: str) -> Customer | None:
        result = await self._session.execute(
            select(Customer).where(Customer.username == username)
        )
        return result.scalar_one_or_none()

    async def find_all_customers(self) -> list[Customer]:
        result = await self._session.execute(
            select(Customer).order_by(Customer.created_at)
        )
        return list(result.scalars().all())

    async def delete_customer(self, customer: Customer) -> None:
        card_ids = select(CreditCard.id).where(CreditCard.customer_id == customer.id)
        await self._session.execute(
            delete(Transaction)
            .where(Transaction.card_id.in_(card_ids))
            .execution_options(synchronize_session=False)
        )
        await self._session.execute(
            delete(CreditCard)
            .where(CreditCard.customer_id == customer.id)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.delete(customer)
        await self._session.flush()

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    async def find_card_by_id(self, card_id: uuid.UUID) -> CreditCard | None:
        result = await self._session.execute(
            select(CreditCard).where(CreditCard.id == card_id)
        )
        return result.scalar_one_or_none()

    async def find_card_by_number_and_customer(
        self,
        card_number: str,
        customer_id: uuid.UUID,
        for_update: bool = False,
    ) -> CreditCard | None:
        """
        Look up a card by number, scoped to its owner.

        With for_update=True the row is locked (SELECT ... FOR UPDATE on
        PostgreSQL; a no-op on SQLite) and the identity map is refreshed
        from the database, so a retry after a lost compare-and-set sees the
        winning posting's values rather than the cached snapshot.
        """
        query = select(CreditCard).where(
            CreditCard.card_number == card_number,
            CreditCard.customer_id == customer_id,
        )
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def find_cards_by_customer(self, customer_id: uuid.UUID) -> list[CreditCard]:
        result = await self._session.execute(
            select(CreditCard)
            .where(CreditCard.customer_id == customer_id)
            .order_by(CreditCard.created_at)
        )
        return list(result.scalars().all())

    async def card_number_exists(self, card_number: str) -> bool:
        result = await self._session.execute(
            select(func.count())
            .select_from(CreditCard)
            .where(CreditCard.card_number == card_number)
        )
        return result.scalar_one() > 0

    async def compare_and_set_card(self, card: CreditCard, **values) -> bool:
        """
        Write `values` to the card only if its version is still the one in `card`.

        Returns True when the row was updated. The in-memory `card` is
        refreshed on success; on failure it is left as read.
        """
        result = await self._session.execute(
            update(CreditCard)
            .where(CreditCard.id == card.id, CreditCard.version == card.version)
            .values(version=card.version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        await self._session.refresh(card)
        return True

    async def delete_card(self, card: CreditCard) -> None:
        await self._session.execute(
            delete(Transaction)
            .where(Transaction.card_id == card.id)
            .execution_options(synchronize_session=False)
        )
        await self._session.delete(card)
        await self._session.flush()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def find_transactions_for_cards(
        self,
        card_ids: Sequence[uuid.UUID],
        txn_type: str | None = None,
    ) -> list[Transaction]:
        if not card_ids:
            return []
        query = (
            select(Transaction)
            .where(Transaction.card_id.in_(card_ids))
            .order_by(Transaction.created_at.desc())
        )
        if txn_type is not None:
            query = query.where(func.upper(Transaction.type) == txn_type.upper())
        result = await self._session.execute(query)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Generic writes
    # ------------------------------------------------------------------

    async def save(self, entity: Customer | CreditCard | Transaction) -> None:
        """Add (or re-add) an entity and flush it to the database."""
        self._session.add(entity)
        await self._session.flush()

    async def rollback(self) -> None:
        await self._session.rollback()
