"""
Pydantic schemas for authentication endpoints (registration and login).

Pydantic validates incoming data automatically — if a required field is
missing or the wrong type, FastAPI returns a 422 error before our code
even runs.
"""

import uuid

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""
    username: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=8)            # Minimum 8 characters
    name: str = Field(min_length=1, max_length=200)
    phone_number: str | None = Field(default=None, max_length=20)
    email: EmailStr | None = None


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    username: str
    password: str


class TokenResponse(BaseModel):
    """Response body for successful login — contains the JWT."""
    token: str
    token_type: str = "bearer"


class RegisterResponse(BaseModel):
    """Response body for successful registration — customer info + JWT."""
    customer_id: uuid.UUID
    username: str
    role: str
    token: str
    token_type: str = "bearer"
