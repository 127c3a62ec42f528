"""
Authentication service — registration and login business logic.

This module contains the core auth logic, separated from HTTP concerns.
The router calls these functions and translates the results into HTTP
responses.

Registration flow:
  1. Check if the username is already taken. The UNIQUE constraint on
     customers.username has the final say: a registration that loses a
     race for the name is rolled back and reported as a duplicate too.
  2. Hash the password with Argon2id
  3. Create the Customer with role USER
  4. Return a JWT token so the customer is immediately logged in

Login flow:
  1. Look up the customer by username
  2. Verify password against stored hash
  3. Return a JWT token carrying the customer id ("sub") and role

Security notes:
  - Registration never grants ADMIN. Admins are promoted by an operator
    (see demo/promote_admin.py).
  - Login returns the same error for "wrong password" and "username not
    found" to prevent user enumeration attacks
"""

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DuplicateUsernameError, InvalidCredentialsError
from app.models.customer import Customer, CustomerRole
from app.repositories import LedgerStore
from app.security import create_access_token, hash_password, verify_password

logger = structlog.get_logger(__name__)


def _issue_token(customer: Customer) -> str:
    return create_access_token(customer.id, customer.role.value)


async def register(
    db: AsyncSession,
    username: str,
    password: str,
    name: str,
    phone_number: str | None = None,
    email: str | None = None,
) -> tuple[Customer, str]:
    """
    Register a new customer.

    Args:
        db: Database session.
        username: Login name (must be unique).
        password: Plaintext password (will be hashed before storage).
        name: Display name, later copied onto issued cards.
        phone_number: Optional phone number.
        email: Optional email address.

    Returns:
        Tuple of (Customer instance, JWT token string).

    Raises:
        DuplicateUsernameError: If the username is already registered.
    """
    store = LedgerStore(db)

    if await store.find_customer_by_username(username) is not None:
        raise DuplicateUsernameError(username)

    customer = Customer(
        username=username,
        hashed_password=hash_password(password),
        name=name,
        phone_number=phone_number,
        email=email,
        role=CustomerRole.USER,
    )
    try:
        await store.save(customer)
    except IntegrityError:
        # Taken by a concurrent registration since the check above
        await store.rollback()
        logger.info("registration_conflict")
        raise DuplicateUsernameError(username)

    logger.info("customer_registered", customer_id=str(customer.id))
    return customer, _issue_token(customer)


async def login(
    db: AsyncSession,
    username: str,
    password: str,
) -> tuple[Customer, str]:
    """
    Authenticate a customer and return a JWT token.

    Raises:
        InvalidCredentialsError: If the username doesn't exist or the
            password is wrong.
    """
    customer = await LedgerStore(db).find_customer_by_username(username)

    # Same error for both cases
    if customer is None or not verify_password(password, customer.hashed_password):
        logger.info("login_failed")
        raise InvalidCredentialsError()

    logger.info("customer_logged_in", customer_id=str(customer.id))
    return customer, _issue_token(customer)
