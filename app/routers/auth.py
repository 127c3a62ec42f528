"""
Authentication router — registration and login endpoints.

These are the only public (unauthenticated) endpoints in the API besides
/health. Everything else requires a valid JWT token.

Endpoints:
  POST /auth/register — Register a new customer and get a token
  POST /auth/login    — Authenticate and get a token

Plaintext passwords exist only in memory during request processing; they
are hashed before any database operation and never logged. The request
logging middleware records method, path and status only, never bodies.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from app.services import auth_service

router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new customer",
)
async def register(
    request: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new customer with the USER role.

    Returns a JWT token so the customer is immediately logged in.

    - **username**: Must not already be registered
    - **password**: Minimum 8 characters
    - **name**: Display name, copied onto cards issued later
    - **phone_number** / **email**: Optional
    """
    customer, token = await auth_service.register(
        db=db,
        username=request.username,
        password=request.password,
        name=request.name,
        phone_number=request.phone_number,
        email=request.email,
    )

    return RegisterResponse(
        customer_id=customer.id,
        username=customer.username,
        role=customer.role.value,
        token=token,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Authenticate and get a token",
)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with username and password.

    Returns a JWT bearer token for the Authorization header:

        Authorization: Bearer <token>
    """
    _, token = await auth_service.login(
        db=db,
        username=request.username,
        password=request.password,
    )
    return TokenResponse(token=token)
