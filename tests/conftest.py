"""Shared pytest fixtures for all test suites."""

import os
from collections.abc import AsyncGenerator, Iterator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool

from backend.app.api.auth import get_current_context
from backend.app.api.routes.history import get_briefing_repository
from backend.app.db.context import RequestContext
from backend.app.db.inmemory import InMemoryBriefingRepository
from backend.app.db.models import Base
from backend.app.llm.client import DeterministicStubClient, get_llm_client
from backend.app.main import app
from backend.app.middleware.ratelimit import reset_rate_limit_middleware

TEST_USER_ID = "00000000-0000-0000-0000-000000000002"


@pytest.fixture(autouse=True)
def fresh_rate_limiter() -> Iterator[None]:
    """Give every test its own in-memory rate limit windows."""
    reset_rate_limit_middleware()
    yield
    reset_rate_limit_middleware()


@pytest.fixture
def stub_client() -> DeterministicStubClient:
    return DeterministicStubClient(words_per_snapshot=4)


@pytest.fixture
def test_context() -> RequestContext:
    return RequestContext(user_id=TEST_USER_ID, email="user@example.com", access_token="token")


@pytest.fixture
def briefing_repository() -> InMemoryBriefingRepository:
    return InMemoryBriefingRepository()


@pytest.fixture
def override_dependencies(
    stub_client: DeterministicStubClient,
    test_context: RequestContext,
    briefing_repository: InMemoryBriefingRepository,
) -> Iterator[None]:
    """Route the app to the stub model, a fixed user and in-memory history.

    Usage:
        def test_something(override_dependencies):
            client = TestClient(app)
    """

    async def _llm_client() -> DeterministicStubClient:
        return stub_client

    async def _context() -> RequestContext:
        return test_context

    async def _repository() -> InMemoryBriefingRepository:
        return briefing_repository

    app.dependency_overrides[get_llm_client] = _llm_client
    app.dependency_overrides[get_current_context] = _context
    app.dependency_overrides[get_briefing_repository] = _repository
    yield
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def sqlite_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def sqlite_session(sqlite_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSession(sqlite_engine, expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def postgres_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string.
    Tests using this fixture should be marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    # Ensure it's a postgres URL
    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    # Convert to async driver if needed
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(database_url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Cleanup: drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def postgres_session(postgres_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSession(postgres_engine, expire_on_commit=False) as session:
        yield session
        await session.rollback()
