"""
Pydantic schemas for postings and transaction history.

Amounts are integer cents and must be positive. A zero or negative amount
is rejected with 422 before the posting engine runs, as is one above
MAX_BALANCE_CENTS.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from app.models.card import MAX_BALANCE_CENTS


class PostingRequest(BaseModel):
    """Request body for POST /cards/debit and POST /cards/credit."""
    customer_id: uuid.UUID
    card_number: str = Field(min_length=16, max_length=16, pattern=r"^\d{16}$")
    amount_cents: int = Field(gt=0, le=MAX_BALANCE_CENTS)    # Must be positive


class TransactionResponse(BaseModel):
    """Public representation of a posted transaction."""
    id: uuid.UUID
    type: str
    amount_cents: int
    card_type: str
    description: str
    card_id: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}
