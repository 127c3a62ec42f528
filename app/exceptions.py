"""
Custom exception classes and FastAPI exception handlers.

The service layer raises domain-specific errors (like InsufficientBalanceError)
without importing HTTP concepts. The handlers registered here translate them
into HTTP responses with a consistent body:

    {"detail": "<human readable message>", "error_type": "<stable kind>"}

Exception hierarchy:
    CardLedgerError (base)
    ├── CustomerNotFoundError         — 404
    ├── CardNotFoundError             — 404 (also: card not owned by customer)
    ├── LedgerValidationError         — 422, a posting broke a business rule
    │   ├── InvalidAmountError
    │   ├── InsufficientBalanceError
    │   ├── WithdrawalLimitExceededError
    │   ├── DailyDebitLimitExceededError
    │   ├── CreditLimitExceededError
    │   └── DailyCreditLimitExceededError
    ├── DuplicateUsernameError        — 409
    ├── LedgerContentionError         — 409, posting kept losing write races
    ├── InvalidCredentialsError       — 401
    ├── ForbiddenError                — 403
    └── CardNumberExhaustedError      — 503, no free card number found
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class CardLedgerError(Exception):
    """Base exception for all Card Ledger domain errors."""

    status_code = 400
    error_type = "ledger_error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------

class CustomerNotFoundError(CardLedgerError):
    """Raised when a requested customer does not exist."""

    status_code = 404
    error_type = "customer_not_found"

    def __init__(self, customer_id: uuid.UUID):
        self.customer_id = customer_id
        super().__init__("Customer not found")


class CardNotFoundError(CardLedgerError):
    """
    Raised when a card does not exist, or when a card number is not owned
    by the customer that was supplied with it.

    A posting that names the wrong customer gets the same error as one
    with an unknown card number.
    """

    status_code = 404
    error_type = "card_not_found"

    def __init__(self, detail: str = "Card not found"):
        super().__init__(detail)

    @classmethod
    def for_customer(cls) -> "CardNotFoundError":
        return cls("Card not found for customer")


# ---------------------------------------------------------------------------
# Posting validation
# ---------------------------------------------------------------------------

class LedgerValidationError(CardLedgerError):
    """
    Raised when a debit or credit breaks a balance or limit rule.

    Attributes:
        requested_cents: The amount the caller tried to post.
        card_number_last_four: Last four digits of the card, when known.
    """

    status_code = 422
    error_type = "validation_error"
    reason = "Validation failed"

    def __init__(self, requested_cents: int, card_number: str | None = None):
        self.requested_cents = requested_cents
        self.card_number_last_four = card_number[-4:] if card_number else None
        super().__init__(self.reason)


class InvalidAmountError(LedgerValidationError):
    error_type = "invalid_amount"
    reason = "Amount must be positive"


class AmountOutOfRangeError(InvalidAmountError):
    """The amount, or the balance it would produce, doesn't fit a card."""
    error_type = "amount_out_of_range"
    reason = "Amount exceeds the largest balance a card can hold"


class InsufficientBalanceError(LedgerValidationError):
    error_type = "insufficient_balance"
    reason = "Insufficient balance"


class WithdrawalLimitExceededError(LedgerValidationError):
    error_type = "withdrawal_limit_exceeded"
    reason = "Max withdrawal limit exceeded"


class DailyDebitLimitExceededError(LedgerValidationError):
    error_type = "daily_debit_limit_exceeded"
    reason = "Daily debit limit exceeded"


class CreditLimitExceededError(LedgerValidationError):
    error_type = "credit_limit_exceeded"
    reason = "Amount exceeds max credit limit"


class DailyCreditLimitExceededError(LedgerValidationError):
    error_type = "daily_credit_limit_exceeded"
    reason = "Daily credit limit exceeded"


# ---------------------------------------------------------------------------
# Conflicts, auth and resource exhaustion
# ---------------------------------------------------------------------------

class DuplicateUsernameError(CardLedgerError):
    """Raised when registering or renaming to a username that's already taken."""

    status_code = 409
    error_type = "duplicate_username"

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"Username {username} is already registered")


class LedgerContentionError(CardLedgerError):
    """Raised when a posting keeps losing concurrent writes to the same card."""

    status_code = 409
    error_type = "ledger_contention"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Card is busy: posting could not be applied after {attempts} attempts"
        )


class InvalidCredentialsError(CardLedgerError):
    """Raised when login credentials are incorrect."""

    status_code = 401
    error_type = "invalid_credentials"

    def __init__(self):
        super().__init__("Invalid username or password")


class ForbiddenError(CardLedgerError):
    """Raised when the principal's role or identity does not allow the request."""

    status_code = 403
    error_type = "forbidden"

    def __init__(self, detail: str = "You don't have permission to access this resource"):
        super().__init__(detail)


class CardNumberExhaustedError(CardLedgerError):
    """Raised when no unused card number was found within the retry ceiling."""

    status_code = 503
    error_type = "card_number_exhausted"

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not generate a unique card number after {attempts} attempts")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    This is called once during app startup in main.py.
    """

    @app.exception_handler(LedgerValidationError)
    async def ledger_validation_handler(
        request: Request, exc: LedgerValidationError
    ) -> JSONResponse:
        logger.info("posting_rejected", reason=exc.error_type, path=request.url.path)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "error_type": exc.error_type,
                "requested_cents": exc.requested_cents,
                "card_number_last_four": exc.card_number_last_four,
            },
        )

    @app.exception_handler(CardLedgerError)
    async def card_ledger_error_handler(
        request: Request, exc: CardLedgerError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("ledger_error", error_type=exc.error_type, detail=exc.detail)
        else:
            logger.info("ledger_error", error_type=exc.error_type, detail=exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error_type": exc.error_type},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Malformed body, path or query, rejected before any service runs
        return JSONResponse(
            status_code=422,
            content={
                "detail": jsonable_encoder(exc.errors()),
                "error_type": "request_validation",
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled_error", path=request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal_error"},
        )
