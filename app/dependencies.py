"""
FastAPI dependencies for authentication and authorization.

Dependencies are reusable functions that FastAPI injects into route handlers.
They turn the bearer token into a Principal, the only thing the routers
pass on when deciding who may do what:

  get_current_principal (JWT -> Principal)
      └── require_admin (Principal -> Principal)   [ADMIN role]

Ownership rules are checked in the routers with ensure_self() and
ensure_self_or_admin(), since they need the customer id from the path or
body. The services never see tokens or roles.

Role-based access control:
  - USER: Can only act on their own profile, cards and transactions.
  - ADMIN: Can read any customer, card or transaction, but cannot post,
    issue or delete on someone else's behalf.
"""

import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import ForbiddenError
from app.models.customer import CustomerRole
from app.repositories import LedgerStore
from app.security import decode_access_token


# OAuth2PasswordBearer tells FastAPI where to look for the token:
# the "Authorization: Bearer <token>" header.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


@dataclass(frozen=True)
class Principal:
    """The authenticated caller: who they are and what role they hold."""
    customer_id: uuid.UUID
    role: CustomerRole

    @property
    def is_admin(self) -> bool:
        return self.role == CustomerRole.ADMIN


async def get_current_principal(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """
    Validate the JWT and return the caller's Principal.

    The role is read from the database rather than the token, so a
    promotion or a deleted customer takes effect on the next request.

    Raises:
        HTTPException 401: If the token is invalid or the customer no
            longer exists.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        claims = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    customer = await LedgerStore(db).find_customer_by_id(claims.customer_id)
    if customer is None:
        raise credentials_exception

    return Principal(customer_id=customer.id, role=customer.role)


async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Raises ForbiddenError (403) unless the caller is an ADMIN."""
    if not principal.is_admin:
        raise ForbiddenError("Admin access required")
    return principal


def ensure_self(principal: Principal, customer_id: uuid.UUID) -> None:
    """Only the customer themselves may perform this action."""
    if principal.customer_id != customer_id:
        raise ForbiddenError()


def ensure_self_or_admin(principal: Principal, customer_id: uuid.UUID) -> None:
    """The customer themselves, or any admin, may read this."""
    if principal.customer_id != customer_id and not principal.is_admin:
        raise ForbiddenError()
