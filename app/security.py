"""
Password hashing and bearer tokens for customers.

Passwords:
  Stored only as Argon2id hashes via passlib. Registration and password
  changes hash; login verifies. Nothing else ever sees the plaintext.

Tokens:
  Login and registration hand back an HS256 JWT signed with SECRET_KEY.
  Its claims are the customer id ("sub"), the customer's role at issue time
  ("role") and the expiry ("exp", ACCESS_TOKEN_EXPIRE_MINUTES from now).
  The role claim is informational for clients; authorization re-reads the
  role from the database on every request (see dependencies.py).
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings


pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a login attempt against the stored hash (constant time)."""
    return pwd_context.verify(plain_password, hashed_password)


@dataclass(frozen=True)
class TokenClaims:
    """What a verified bearer token says about its holder."""
    customer_id: uuid.UUID
    role: str


def create_access_token(
    customer_id: uuid.UUID,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Mint a signed bearer token for a customer.

    Args:
        customer_id: Becomes the "sub" claim.
        role: Becomes the "role" claim ("USER" or "ADMIN").
        expires_delta: Token lifetime. Defaults to
                       ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": str(customer_id),
        "role": role,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    """
    Verify a bearer token and return its claims.

    Raises:
        JWTError: If the signature is bad, the token has expired, or the
            subject is missing or not a customer id.
    """
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

    subject = payload.get("sub")
    if subject is None:
        raise JWTError("Token has no subject")
    try:
        customer_id = uuid.UUID(subject)
    except ValueError as exc:
        raise JWTError("Token subject is not a customer id") from exc

    return TokenClaims(customer_id=customer_id, role=payload.get("role", ""))
