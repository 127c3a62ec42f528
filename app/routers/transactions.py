"""
Transactions router — read-only transaction history.

Endpoints:
  GET /transactions/customer/{customer_id}  — All transactions on a customer's cards
  GET /transactions/card/{card_id}          — Transactions on one card

Both accept an optional ?type=credit|debit filter, matched
case-insensitively. Results are newest first.

Transactions are immutable — they are created only by postings
(POST /cards/debit, POST /cards/credit) and removed only when their card
is deleted.
"""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import Principal, ensure_self_or_admin, get_current_principal
from app.schemas.transaction import TransactionResponse
from app.services import card_service, customer_service

router = APIRouter()

TYPE_FILTER_PATTERN = r"(?i)^(credit|debit)$"


@router.get(
    "/customer/{customer_id}",
    response_model=list[TransactionResponse],
    summary="List a customer's transactions",
)
async def list_customer_transactions(
    customer_id: uuid.UUID,
    type: str | None = Query(default=None, pattern=TYPE_FILTER_PATTERN),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    ensure_self_or_admin(principal, customer_id)
    return await customer_service.list_transactions_for_customer(
        db, customer_id, type_filter=type
    )


@router.get(
    "/card/{card_id}",
    response_model=list[TransactionResponse],
    summary="List a card's transactions",
)
async def list_card_transactions(
    card_id: uuid.UUID,
    type: str | None = Query(default=None, pattern=TYPE_FILTER_PATTERN),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    card = await card_service.get_card(db, card_id)
    ensure_self_or_admin(principal, card.customer_id)
    return await customer_service.list_transactions_for_card(
        db, card_id, type_filter=type
    )
