"""
Cards router — issuance, holder-name updates, deletion and postings.

Endpoints:
  POST   /cards                          — Issue a card (self only)
  POST   /cards/debit                    — Debit a card (self only)
  POST   /cards/credit                   — Credit a card (self only)
  GET    /cards/customer/{customer_id}   — A customer's cards (self or ADMIN)
  GET    /cards/{card_id}                — One card (owner or ADMIN)
  PUT    /cards/{card_id}                — Change the holder name (owner only)
  DELETE /cards/{card_id}                — Delete a card and its history (owner only)

Postings identify the card by (customer_id, card_number). The caller must
be that customer; a number that belongs to someone else is reported as
not found rather than forbidden.

Static paths (/debit, /credit, /customer/...) are declared before
/{card_id} so they are matched first.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import (
    Principal,
    ensure_self,
    ensure_self_or_admin,
    get_current_principal,
)
from app.schemas.card import (
    CardCreateRequest,
    CardDeleteResponse,
    CardResponse,
    CardUpdateRequest,
)
from app.schemas.transaction import PostingRequest
from app.services import card_service, transaction_service

router = APIRouter()


@router.post(
    "",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a new card",
)
async def create_card(
    request: CardCreateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Issue a new credit card to the calling customer.

    - A unique 16-digit card number is generated
    - The holder name is copied from the customer's current name
    - The card expires 10 years after issuance
    - Limits are the configured defaults at the time of issuance
    """
    ensure_self(principal, request.customer_id)
    return await card_service.create_card(
        db=db,
        customer_id=request.customer_id,
        initial_balance_cents=request.initial_balance_cents,
        card_type=request.card_type,
        is_active=request.is_active,
    )


@router.post(
    "/debit",
    response_model=CardResponse,
    summary="Debit a card",
)
async def debit_card(
    request: PostingRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Take money off a card and record a DEBIT transaction.

    Rejected (422) when the amount exceeds the balance, the card's max
    single withdrawal, or what is left of today's debit limit. A rejected
    debit changes nothing.
    """
    ensure_self(principal, request.customer_id)
    return await transaction_service.debit(
        db=db,
        customer_id=request.customer_id,
        card_number=request.card_number,
        amount_cents=request.amount_cents,
    )


@router.post(
    "/credit",
    response_model=CardResponse,
    summary="Credit a card",
)
async def credit_card(
    request: PostingRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Put money on a card and record a CREDIT transaction.

    Rejected (422) when the amount exceeds the card's max single credit or
    what is left of today's credit limit. A rejected credit changes nothing.
    """
    ensure_self(principal, request.customer_id)
    return await transaction_service.credit(
        db=db,
        customer_id=request.customer_id,
        card_number=request.card_number,
        amount_cents=request.amount_cents,
    )


@router.get(
    "/customer/{customer_id}",
    response_model=list[CardResponse],
    summary="List a customer's cards",
)
async def list_customer_cards(
    customer_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    ensure_self_or_admin(principal, customer_id)
    return await card_service.get_cards_for_customer(db, customer_id)


@router.get(
    "/{card_id}",
    response_model=CardResponse,
    summary="Get a card",
)
async def get_card(
    card_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    card = await card_service.get_card(db, card_id)
    ensure_self_or_admin(principal, card.customer_id)
    return card


@router.put(
    "/{card_id}",
    response_model=CardResponse,
    summary="Change a card's holder name",
)
async def update_card(
    card_id: uuid.UUID,
    request: CardUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Only the holder name can change. Balance, limits, counters, type and
    dates are ignored if sent.
    """
    card = await card_service.get_card(db, card_id)
    ensure_self(principal, card.customer_id)
    return await card_service.update_card(db, card_id, request.card_holder_name)


@router.delete(
    "/{card_id}",
    response_model=CardDeleteResponse,
    summary="Delete a card",
)
async def delete_card(
    card_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Deletes the card and every transaction posted to it."""
    card = await card_service.get_card(db, card_id)
    ensure_self(principal, card.customer_id)
    deleted_id = await card_service.delete_card(db, card_id)
    return CardDeleteResponse(id=deleted_id)
