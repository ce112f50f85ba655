"""
Notes API — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own in-memory SQLite database (tables created on
       setup, dropped and disposed on teardown) which is injected into the
       app through `dependency_overrides`. Nothing is shared between tests.

Fixture Hierarchy (all function-scoped):
    ├── test_settings: Settings for the "testing" environment
    ├── db_engine → session_factory → db_session: real async database
    ├── mock_db_session: AsyncMock session for "no round trip" assertions
    ├── app → test_client: FastAPI app + HTTPX AsyncClient
    └── create_note: helper inserting notes directly through the store
"""

import os

# Must be set before notes_api is imported: the engine is built at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import AsyncGenerator, List, Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from notes_api.config import Settings  # noqa: E402
from notes_api.database import Base, get_db_session  # noqa: E402
from notes_api.main import create_app  # noqa: E402
from notes_api.models.note import Note  # noqa: E402
from notes_api.services.note_store import note_store  # noqa: E402

TRUSTED_ORIGIN = "http://localhost:3000"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite://",
        environment="testing",
        cors_trusted_origins=TRUSTED_ORIGIN,
        log_level="WARNING",
    )


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    """
    A private in-memory database for one test.

    StaticPool keeps the single connection alive so every session in the
    test sees the same database; teardown drops the schema and disposes
    the engine.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Lets store tests assert that a call never reached the database.
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Application Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(test_settings, session_factory):
    """The FastAPI app wired to the per-test database."""
    application = create_app(test_settings)

    async def override_get_db_session():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db_session] = override_get_db_session
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/v1/healthcheck")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def create_note(session_factory):
    """Insert a note through the store in its own session and return it."""

    async def _create(
        title: str = "Test Note",
        body: str = "Test Body",
        tags: Optional[List[str]] = None,
    ) -> Note:
        async with session_factory() as session:
            return await note_store.insert(
                session, title=title, body=body, tags=["test"] if tags is None else tags
            )

    return _create
