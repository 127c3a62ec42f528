"""
Runtime settings for the Card Ledger API.

Values come from the process environment first, then a local .env file,
then the defaults below. SECRET_KEY has no default and must be provided.

Card limits:
  The CARD_* limit values are copied onto each card at issuance time. Changing
  them here only affects cards issued afterwards — existing cards keep the
  limits they were issued with.

Every module reads the shared `settings` instance at call time, so tests
can monkeypatch individual values.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Card Ledger API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    # "json" for machine-readable output, anything else for the console renderer
    LOG_FORMAT: str = "console"

    # --- Database ---
    # SQLite for local use; swap to a PostgreSQL connection string for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/ledger.db"

    # --- Authentication ---
    # Required, no default
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- Card issuance ---
    CARD_TERM_YEARS: int = 10
    CARD_NUMBER_MAX_ATTEMPTS: int = Field(default=10, ge=1)

    # --- Per-card limits, in cents ---
    CARD_MAX_WITHDRAWAL_CENTS: int = 5_000_000
    CARD_DAILY_DEBIT_LIMIT_CENTS: int = 10_000_000
    CARD_MAX_CREDIT_CENTS: int = 5_000_000
    CARD_DAILY_CREDIT_LIMIT_CENTS: int = 10_000_000

    # --- Posting engine ---
    # Total attempts a posting gets (the first read included) before giving up
    # on a card that keeps changing under it
    POSTING_MAX_RETRIES: int = Field(default=10, ge=1)
    # Reset the daily debit/credit counters on the first posting of a new UTC day
    DAILY_LIMIT_RESET_ENABLED: bool = True

    # --- CORS ---
    # Origins allowed to make cross-origin requests (frontend URLs)
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


settings = Settings()
