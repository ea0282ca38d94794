"""Pytest configuration and fixtures for Quotebook tests.

Tests run against an in-memory SQLite database (aiosqlite); Redis caching
is disabled unless a test patches it in.
"""

import os

# Must be set before quotebook.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CACHE_ENABLED"] = "false"
os.environ["DEBUG"] = "false"

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import quotebook.models  # noqa: F401
from quotebook.auth.jwt import create_access_token
from quotebook.database import Base, get_db
from quotebook.main import app
from quotebook.storage.db_store import DatabaseDocumentStore

OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Test client with the database dependency pointed at the test engine."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def db_store(session_factory) -> DatabaseDocumentStore:
    return DatabaseDocumentStore(session_factory)


# ── Auth Fixtures ────────────────────────────────────────────────

@pytest.fixture
def owner_id() -> str:
    return OWNER_ID


@pytest.fixture
def test_token() -> str:
    return create_access_token(OWNER_ID)


@pytest.fixture
def auth_headers(test_token: str) -> dict:
    return {"Authorization": f"Bearer {test_token}"}


@pytest.fixture
def other_headers() -> dict:
    return {"Authorization": f"Bearer {create_access_token(OTHER_OWNER_ID)}"}


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "cache: Cache tests")
    config.addinivalue_line("markers", "slow: Slow tests")
