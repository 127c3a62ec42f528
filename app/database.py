"""
Async SQLAlchemy wiring for the ledger: engine, session factory, model base,
and the per-request unit of work.

SQLite (aiosqlite) is the default backend. Point DATABASE_URL at
postgresql+asyncpg://... to get real row locks for postings; nothing else
changes.

Unit of work:
  get_db() opens one session per request and ends it according to how the
  request ended:
    - returned normally       -> commit
    - raised CardLedgerError  -> commit, then re-raise
    - raised anything else    -> rollback, then re-raise
  Domain errors are raised before a service writes anything (a rejected
  posting changes no rows), so committing them just closes the read
  transaction. Rolling back is kept for failures we didn't anticipate.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.exceptions import CardLedgerError


# DEBUG echoes every SQL statement
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
)

# Objects stay readable after commit; response models are built from them
# once the service has returned.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for Customer, CreditCard and Transaction."""
    pass


async def get_db():
    """Yield a request-scoped AsyncSession and close out its transaction."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except CardLedgerError:
            await session.commit()
            raise
        except Exception:
            await session.rollback()
            raise
