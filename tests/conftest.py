"""
Test fixtures for the Card Ledger API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / session_factory / db_session: Fresh in-memory SQLite
    database for each test
  - client: Async HTTP test client (unauthenticated)
  - authenticated_client: Client logged in as a freshly registered USER
  - second_authenticated_client: A second USER for cross-customer tests
  - admin_client: Client logged in as an ADMIN
  - customer_id / second_customer_id: Ids of the two USER customers
  - issue_card: Factory that issues a card through the API
  - set_card_state: Factory that writes card columns directly (for
    putting a card into a state the API can't reach, e.g. yesterday's
    counters)
  - file_session_factory: Sessions on a file-backed database, one
    connection each, for tests that need real isolation between sessions

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    StaticPool keeps every session on the one connection that holds the
    in-memory database, so a posting made over HTTP is visible to the
    assertions that follow.
  - With a single shared connection, a rollback from any session discards
    everyone's pending writes. The get_db override therefore follows the
    same policy as the app (commit on success and on domain errors), and
    pool_reset_on_return=None stops a closing session from rolling back.
  - The admin_client fixture registers normally and then promotes the
    customer directly in the database, the way an operator would.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

import uuid

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_db
from app.exceptions import CardLedgerError
from app.main import app
from app.models.card import CreditCard
from app.models.customer import Customer, CustomerRole


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"

USER_PASSWORD = "SecurePass123!"
SECOND_USER_PASSWORD = "SecurePass456!"
ADMIN_PASSWORD = "AdminPass123!"


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        pool_reset_on_return=None,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Provide an async session bound to the test engine."""
    async with session_factory() as session:
        yield session
        await session.commit()


@pytest_asyncio.fixture
async def test_app(session_factory):
    """The FastAPI app with get_db pointed at the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except CardLedgerError:
                await session.commit()
                raise
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


def _new_client(test_app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test")


async def _register_and_login(client: AsyncClient, username: str, password: str, name: str) -> str:
    response = await client.post(
        "/auth/register",
        json={"username": username, "password": password, "name": name},
    )
    assert response.status_code == 201, f"Register failed: {response.text}"
    token = response.json()["token"]
    client.headers["Authorization"] = f"Bearer {token}"
    return response.json()["customer_id"]


@pytest_asyncio.fixture
async def client(test_app):
    """Async HTTP test client with the test database injected."""
    async with _new_client(test_app) as ac:
        yield ac


@pytest_asyncio.fixture
async def authenticated_client(client):
    """
    Test client logged in as a freshly registered customer ("alice").

    Registers through the real endpoint so every test exercises the
    registration flow, then sets the Authorization header.
    """
    await _register_and_login(client, "alice", USER_PASSWORD, "Alice Smith")
    return client


@pytest_asyncio.fixture
async def second_authenticated_client(test_app):
    """
    A second customer ("bob") with their own client.

    Use alongside authenticated_client to verify that one customer cannot
    reach another's cards or transactions.
    """
    async with _new_client(test_app) as ac:
        await _register_and_login(ac, "bob", SECOND_USER_PASSWORD, "Bob Jones")
        yield ac


@pytest_asyncio.fixture
async def admin_client(test_app, session_factory):
    """
    Test client logged in as an ADMIN.

    Registers a normal customer, promotes them directly in the database,
    then logs in again so the new token carries the ADMIN role.
    """
    async with _new_client(test_app) as ac:
        admin_id = await _register_and_login(ac, "admin", ADMIN_PASSWORD, "Admin User")

        async with session_factory() as session:
            await session.execute(
                update(Customer)
                .where(Customer.id == uuid.UUID(admin_id))
                .values(role=CustomerRole.ADMIN)
            )
            await session.commit()

        login_response = await ac.post(
            "/auth/login",
            json={"username": "admin", "password": ADMIN_PASSWORD},
        )
        assert login_response.status_code == 200
        ac.headers["Authorization"] = f"Bearer {login_response.json()['token']}"
        yield ac


@pytest_asyncio.fixture
async def customer_id(authenticated_client) -> str:
    response = await authenticated_client.get("/customers/me")
    return response.json()["id"]


@pytest_asyncio.fixture
async def second_customer_id(second_authenticated_client) -> str:
    response = await second_authenticated_client.get("/customers/me")
    return response.json()["id"]


@pytest.fixture
def issue_card():
    """Issue a card through POST /cards and return the response body."""

    async def _issue(client: AsyncClient, owner_id: str, initial_balance_cents: int = 0, **extra) -> dict:
        response = await client.post(
            "/cards",
            json={
                "customer_id": owner_id,
                "initial_balance_cents": initial_balance_cents,
                **extra,
            },
        )
        assert response.status_code == 201, f"Card issuance failed: {response.text}"
        return response.json()

    return _issue


@pytest.fixture
def set_card_state(session_factory):
    """Write card columns directly, bypassing the posting engine."""

    async def _set(card_id: str, **values) -> None:
        async with session_factory() as session:
            await session.execute(
                update(CreditCard)
                .where(CreditCard.id == uuid.UUID(card_id))
                .values(**values)
            )
            await session.commit()

    return _set


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """
    Session factory on a file-backed SQLite database with the default pool.

    Unlike session_factory, every session here checks out its own
    connection, so concurrent sessions only see each other's committed
    writes, as separate requests do in production.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()
