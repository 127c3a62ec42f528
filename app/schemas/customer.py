"""
Pydantic schemas for customer profile endpoints.

Responses are one-way projections of the ORM objects. The password hash
is never part of any response model.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.models.customer import CustomerRole
from app.schemas.card import CardResponse


class CustomerUpdateRequest(BaseModel):
    """
    Request body for PATCH /customers/{id}.

    All fields are optional — only the ones provided are changed.
    """
    username: str | None = Field(default=None, min_length=3, max_length=100)
    password: str | None = Field(default=None, min_length=8)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    phone_number: str | None = Field(default=None, max_length=20)
    email: EmailStr | None = None


class CustomerResponse(BaseModel):
    """Public representation of a customer."""
    id: uuid.UUID
    username: str
    name: str
    phone_number: str | None
    email: str | None
    role: CustomerRole
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CustomerDetailResponse(CustomerResponse):
    """A customer together with the cards they own."""
    cards: list[CardResponse] = []
