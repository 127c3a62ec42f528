"""
Customers router — profile reads, updates and deletion.

Endpoints:
  GET    /customers       — List every customer (ADMIN only)
  GET    /customers/me    — The caller's own profile
  GET    /customers/{id}  — A profile with its cards (self or ADMIN)
  PATCH  /customers/{id}  — Update a profile (self only)
  DELETE /customers/{id}  — Delete a profile, its cards and transactions (self only)
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
    require_admin,
)
from app.schemas.card import CardResponse
from app.schemas.customer import (
    CustomerDetailResponse,
    CustomerResponse,
    CustomerUpdateRequest,
)
from app.services import customer_service

router = APIRouter()


@router.get(
    "",
    response_model=list[CustomerResponse],
    summary="List all customers",
)
async def list_customers(
    _: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await customer_service.get_all_customers(db)


@router.get(
    "/me",
    response_model=CustomerResponse,
    summary="Get my profile",
)
async def get_me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await customer_service.get_customer(db, principal.customer_id)


@router.get(
    "/{customer_id}",
    response_model=CustomerDetailResponse,
    summary="Get a customer with their cards",
)
async def get_customer(
    customer_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Admins may read any customer; everyone else only themselves."""
    ensure_self_or_admin(principal, customer_id)
    customer, cards = await customer_service.get_customer_with_cards(db, customer_id)

    detail = CustomerDetailResponse.model_validate(customer)
    detail.cards = [CardResponse.model_validate(card) for card in cards]
    return detail


@router.patch(
    "/{customer_id}",
    response_model=CustomerResponse,
    summary="Update my profile",
)
async def update_customer(
    customer_id: uuid.UUID,
    request: CustomerUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Update name, phone number, email, username or password.

    Only fields present in the body are changed. Renaming does not change
    the holder name on existing cards.
    """
    ensure_self(principal, customer_id)
    return await customer_service.update_customer(
        db,
        customer_id,
        name=request.name,
        phone_number=request.phone_number,
        email=request.email,
        username=request.username,
        password=request.password,
    )


@router.delete(
    "/{customer_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete my profile",
)
async def delete_customer(
    customer_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Deletes the customer, every card they own, and all transactions on those cards."""
    ensure_self(principal, customer_id)
    await customer_service.delete_customer(db, customer_id)
