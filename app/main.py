"""
Card Ledger API entry point.

Assembles the app: structlog and tables on startup, request logging and
CORS middleware, the CardLedgerError handlers, and the four routers
(/auth, /customers, /cards, /transactions).

    SECRET_KEY=... uvicorn app.main:app --reload
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import engine, Base
from app.exceptions import register_exception_handlers
from app.logging_config import setup_logging
from app.middleware import LoggingMiddleware
from app.routers import auth, cards, customers, transactions

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and create missing tables; dispose the engine on exit."""
    setup_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("app_started", app_name=settings.APP_NAME, version=settings.APP_VERSION)
    yield
    await engine.dispose()
    logger.info("app_stopped")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Credit card ledger: customers, cards, debits, credits and transaction history",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(LoggingMiddleware)

# CORS: Allow specified frontend origins to make requests.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(customers.router, prefix="/customers", tags=["Customers"])
app.include_router(cards.router, prefix="/cards", tags=["Cards"])
app.include_router(transactions.router, prefix="/transactions", tags=["Transactions"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for deployment probes."""
    return {"status": "ok", "version": settings.APP_VERSION}
