"""
Test fixtures for the Wallet API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - user: A user row inserted directly, for service-level tests
  - client: Async HTTP test client (unauthenticated)
  - authenticated_client: Test client with a registered user and JWT
  - second_authenticated_client: A second user on its own client, for
    cross-user tests

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database.
  - FastAPI's get_db dependency is overridden to use the test engine, so
    the application code runs exactly as it does in production.
  - authenticated_client registers through the real /auth/register
    endpoint, so every HTTP test also exercises registration.
"""

import os

# Settings are read at import time; provide what the app requires first.
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from wallet.database import Base, get_db  # noqa: E402
from wallet.main import app  # noqa: E402
from wallet.models.user import User  # noqa: E402
from wallet.services.activation import reset_activation_policy  # noqa: E402


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Provide an async session bound to the test engine."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def user(db_session):
    """A user inserted directly (no main account), for service tests."""
    user = User(username="alice", email="alice@example.com", hashed_password="x")
    db_session.add(user)
    await db_session.flush()
    return user


def _session_override(db_engine):
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return override_get_db


@pytest_asyncio.fixture
async def client(db_engine):
    """
    Async HTTP test client with the test database injected.

    This overrides the get_db dependency so all requests hit the
    in-memory test database instead of the real one.
    """
    app.dependency_overrides[get_db] = _session_override(db_engine)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
    reset_activation_policy()


async def _register(client, username, email, password):
    response = await client.post(
        "/auth/register",
        json={"username": username, "email": email, "password": password},
    )
    assert response.status_code == 201, f"Registration failed: {response.text}"
    client.headers["Authorization"] = f"Bearer {response.json()['token']}"
    return client


@pytest_asyncio.fixture
async def authenticated_client(client):
    """
    Test client with a pre-registered user and JWT token.

    Registers a test user via the real endpoint, then sets the
    Authorization header on the client for all subsequent requests.
    """
    return await _register(client, "testuser", "testuser@example.com", "SecurePass123!")


@pytest_asyncio.fixture
async def second_authenticated_client(authenticated_client):
    """
    A second user with its own client, sharing the same database.

    Use this alongside authenticated_client to verify that user A cannot
    access user B's accounts and data.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as other:
        yield await _register(other, "seconduser", "seconduser@example.com", "SecurePass456!")
