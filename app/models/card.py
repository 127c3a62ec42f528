"""
CreditCard model — a card issued to a Customer, and the unit of locking
for every posting.

Each card has:
  - A unique 16-digit card number (UNIQUE constraint — the store is the
    authority on uniqueness, not the generator)
  - A holder name copied from the customer at issuance (never re-synced)
  - A 10-year term from the issue date
  - A balance in integer cents, at most MAX_BALANCE_CENTS (the largest
    value a BIGINT column holds)
  - Fixed per-card limits, copied from settings at issuance
  - Two running counters for the current accounting day

The card aggregate:
  balance_cents, daily_debited_cents, daily_credited_cents and
  accounting_day are the mutable state that postings validate and change.
  They are only ever written together, through a compare-and-set on
  `version` (see LedgerStore.compare_and_set_card), so two postings can
  never both pass validation against the same snapshot.

Database-level CHECK constraints back the invariants the posting engine
enforces in code:
  - balance_cents >= 0
  - daily_debited_cents <= daily_debit_limit_cents
  - daily_credited_cents <= daily_credit_limit_cents
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, Boolean, Integer, BigInteger, Date, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

# Largest signed 64-bit value; every cents column is a BIGINT
MAX_BALANCE_CENTS = 2**63 - 1


class CreditCard(Base):
    __tablename__ = "credit_cards"

    __table_args__ = (
        CheckConstraint(
            "balance_cents >= 0",
            name="ck_credit_cards_non_negative_balance",
        ),
        CheckConstraint(
            "daily_debited_cents <= daily_debit_limit_cents",
            name="ck_credit_cards_daily_debit_within_limit",
        ),
        CheckConstraint(
            "daily_credited_cents <= daily_credit_limit_cents",
            name="ck_credit_cards_daily_credit_within_limit",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    card_number: Mapped[str] = mapped_column(
        String(16),
        unique=True,
        nullable=False,
        index=True,
    )

    customer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    card_holder_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    # Free-form tag, e.g. "VISA", "PLATINUM"
    card_type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)

    balance_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    # --- Fixed limits ---
    max_withdrawal_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    daily_debit_limit_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    max_credit_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    daily_credit_limit_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # --- Running counters for accounting_day ---
    daily_debited_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )
    daily_credited_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )
    accounting_day: Mapped[date] = mapped_column(Date, nullable=False)

    # Bumped by every posting; a write that doesn't see the version it read loses
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
