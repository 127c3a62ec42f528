"""
Transaction model — the append-only ledger entry for a posting.

Every successful debit or credit creates exactly one Transaction, in the
same database transaction as the card balance change it records. Rejected
postings create nothing.

Key fields:
  - type: "CREDIT" (money onto the card) or "DEBIT" (money off the card)
  - amount_cents: Always positive (the direction is implied by the type)
  - card_type: Snapshot of the card's type at posting time
  - card_id: The card the posting was applied to

There is no update or delete path. Rows disappear only when their card
(or the card's customer) is deleted.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, BigInteger, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class TransactionType(str, enum.Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        # Direction is the type; the amount is always positive
        CheckConstraint("amount_cents > 0", name="ck_transactions_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # "CREDIT" or "DEBIT"
    type: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )

    amount_cents: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    card_type: Mapped[str] = mapped_column(
        String(30),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    card_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("credit_cards.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
