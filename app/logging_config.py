"""
Structured logging configuration.

Every module logs through structlog:

    logger = structlog.get_logger(__name__)
    logger.info("card_debited", card_number_last_four="4242", amount_cents=1500)

Event names are snake_case and fields are keyword arguments, so the JSON
renderer produces one machine-readable object per line. Set LOG_FORMAT=json
in deployed environments; the console renderer is the local default.

What is never logged:
  - Passwords (plaintext or hashed) and JWT tokens
  - Full card numbers — only the last four digits
"""

import logging
import sys
from typing import Any

import structlog
from structlog.processors import JSONRenderer, TimeStamper, add_log_level
from structlog.stdlib import add_logger_name

from app.config import settings


def setup_logging() -> None:
    """Configure structlog and the stdlib root logger from settings."""
    log_level = settings.LOG_LEVEL.upper()

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_log_level,
        add_logger_name,
        TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.LOG_FORMAT == "json":
        processors.append(JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level)
        ),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )
