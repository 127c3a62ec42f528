"""
Pydantic schemas for Card endpoints.

Card responses are only ever returned to the card's owner (or an admin),
so they carry the full card number alongside balance, limits and the
running daily counters. All money fields are integer cents.
"""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from app.models.card import MAX_BALANCE_CENTS


class CardCreateRequest(BaseModel):
    """Request body for POST /cards."""
    customer_id: uuid.UUID
    initial_balance_cents: int = Field(default=0, ge=0, le=MAX_BALANCE_CENTS)
    card_type: str = Field(default="VISA", min_length=1, max_length=30)
    is_active: bool = True


class CardUpdateRequest(BaseModel):
    """
    Request body for PUT /cards/{card_id}.

    Only the holder name can be changed. Any other field in the body is
    ignored.
    """
    card_holder_name: str = Field(min_length=1, max_length=200)


class CardResponse(BaseModel):
    """Owner's view of a card."""
    id: uuid.UUID
    card_number: str
    customer_id: uuid.UUID
    card_holder_name: str
    card_type: str
    is_active: bool
    issue_date: date
    expiry_date: date
    balance_cents: int
    max_withdrawal_cents: int
    daily_debit_limit_cents: int
    max_credit_cents: int
    daily_credit_limit_cents: int
    daily_debited_cents: int
    daily_credited_cents: int
    accounting_day: date
    created_at: datetime

    model_config = {"from_attributes": True}


class CardDeleteResponse(BaseModel):
    id: uuid.UUID
    deleted: bool = True
