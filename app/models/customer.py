"""
Customer model — the account owner and login identity.

A Customer is both the authentication identity (username + hashed password +
role) and the owner of zero or more credit cards. Only the owning customer
may create or delete its cards.

Roles:
  - USER: A card holder — the default role for registration
  - ADMIN: Read-only oversight of every customer, card and transaction.
    Admins are provisioned by an operator, never through registration.

The password is stored as an Argon2id hash — never in plaintext.

Deleting a customer removes its cards, and through them their transactions.
The foreign keys carry ON DELETE CASCADE, and the ledger store also deletes
the child rows explicitly so the cascade holds on SQLite without the
foreign_keys pragma.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Enum
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class CustomerRole(str, enum.Enum):
    """
    Authorization tag carried by every customer.

    Inherits from str so the enum value serializes naturally to JSON
    and into the JWT role claim.
    """
    USER = "USER"
    ADMIN = "ADMIN"


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Login identifier
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
    )

    # Argon2id hash of the password
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Display name; copied onto cards as the holder name at issuance
    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    phone_number: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
    )

    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    role: Mapped[CustomerRole] = mapped_column(
        Enum(CustomerRole),
        default=CustomerRole.USER,
        nullable=False,
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
