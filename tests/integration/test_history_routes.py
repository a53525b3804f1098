"""Integration tests for briefing history (routes and SQL repository)."""

from collections.abc import AsyncGenerator, Iterator
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from backend.app.api.routes.history import get_briefing_repository
from backend.app.config import Settings
from backend.app.db.context import RequestContext
from backend.app.db.engine import NOT_CONFIGURED_MESSAGE, resolve_database_url
from backend.app.db.inmemory import InMemoryBriefingRepository
from backend.app.db.repositories import HISTORY_LIMIT
from backend.app.db.sql_repositories import MISSING_TABLE_MESSAGE, SqlBriefingRepository
from backend.app.errors import StorageError
from backend.app.main import app

SQL_USER_ID = "00000000-0000-0000-0000-000000000042"
OTHER_USER = RequestContext(user_id="00000000-0000-0000-0000-000000000099")


def asgi_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


@pytest.fixture
def client(override_dependencies: None) -> TestClient:
    return TestClient(app)


class TestHistoryRoutes:
    """POST and GET /history with an in-memory repository."""

    def test_create_returns_201_with_record(
        self, client: TestClient, test_context: RequestContext
    ) -> None:
        response = client.post(
            "/history", json={"fileName": "lease.pdf", "summary": "# Summary"}
        )

        assert response.status_code == 201
        record = response.json()["record"]
        assert record["user_id"] == test_context.user_id
        assert record["file_name"] == "lease.pdf"
        assert record["summary"] == "# Summary"
        assert record["id"]
        assert record["created_at"]

    def test_summary_is_optional(self, client: TestClient) -> None:
        response = client.post("/history", json={"fileName": "scan.png"})

        assert response.status_code == 201
        assert response.json()["record"]["summary"] is None

    def test_file_name_is_required(self, client: TestClient) -> None:
        response = client.post("/history", json={"summary": "x"})

        assert response.status_code == 400
        assert response.json() == {"message": "fileName is required."}

    def test_list_is_newest_first(self, client: TestClient) -> None:
        for name in ("first.pdf", "second.pdf", "third.pdf"):
            client.post("/history", json={"fileName": name, "summary": name})

        response = client.get("/history")

        assert response.status_code == 200
        names = [record["file_name"] for record in response.json()["records"]]
        assert names == ["third.pdf", "second.pdf", "first.pdf"]

    @pytest.mark.asyncio
    async def test_list_only_shows_callers_records(
        self, override_dependencies: None, briefing_repository: InMemoryBriefingRepository
    ) -> None:
        await briefing_repository.create_briefing(OTHER_USER, file_name="theirs.pdf", summary=None)

        async with asgi_client() as client:
            await client.post("/history", json={"fileName": "mine.pdf"})
            records = (await client.get("/history")).json()["records"]

        assert [record["file_name"] for record in records] == ["mine.pdf"]


class TestHistoryAuth:
    """Requests without a valid session."""

    @pytest.fixture
    def anonymous_client(self) -> Iterator[TestClient]:
        async def _repository() -> InMemoryBriefingRepository:
            return InMemoryBriefingRepository()

        app.dependency_overrides[get_briefing_repository] = _repository
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_create_without_token_is_401(self, anonymous_client: TestClient) -> None:
        response = anonymous_client.post("/history", json={"fileName": "lease.pdf"})

        assert response.status_code == 401
        assert response.json() == {"message": "Authentication required."}

    def test_list_with_malformed_header_is_401(self, anonymous_client: TestClient) -> None:
        response = anonymous_client.get("/history", headers={"Authorization": "Token abc"})

        assert response.status_code == 401


def ctx_for(user_id: str = SQL_USER_ID) -> RequestContext:
    return RequestContext(user_id=user_id)


class TestSqlBriefingRepository:
    """SqlBriefingRepository against SQLite."""

    @pytest.mark.asyncio
    async def test_create_and_list(self, sqlite_session: AsyncSession) -> None:
        repo = SqlBriefingRepository(sqlite_session)

        created = await repo.create_briefing(ctx_for(), file_name="lease.pdf", summary="# S")
        records = await repo.list_briefings(ctx_for())

        assert [r.id for r in records] == [created.id]
        assert records[0].file_name == "lease.pdf"
        assert records[0].summary == "# S"
        assert records[0].created_at is not None

    @pytest.mark.asyncio
    async def test_list_is_newest_first_and_limited(self, sqlite_session: AsyncSession) -> None:
        repo = SqlBriefingRepository(sqlite_session)
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)

        for i in range(HISTORY_LIMIT + 5):
            await repo.create_briefing(
                ctx_for(),
                file_name=f"doc-{i:02d}.pdf",
                summary=None,
                created_at=base + timedelta(minutes=i),
            )

        records = await repo.list_briefings(ctx_for())

        assert len(records) == HISTORY_LIMIT
        assert records[0].file_name == f"doc-{HISTORY_LIMIT + 4:02d}.pdf"
        assert records[-1].file_name == "doc-05.pdf"

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_user(self, sqlite_session: AsyncSession) -> None:
        repo = SqlBriefingRepository(sqlite_session)

        await repo.create_briefing(ctx_for(), file_name="mine.pdf", summary=None)
        await repo.create_briefing(OTHER_USER, file_name="theirs.pdf", summary=None)

        mine = await repo.list_briefings(ctx_for())
        theirs = await repo.list_briefings(OTHER_USER)

        assert [r.file_name for r in mine] == ["mine.pdf"]
        assert [r.file_name for r in theirs] == ["theirs.pdf"]


@pytest_asyncio.fixture
async def bare_session() -> AsyncGenerator[AsyncSession, None]:
    """Session on a database where the migration was never run."""
    engine: AsyncEngine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session
    await engine.dispose()


class TestMissingTable:
    """Storage errors when the history table does not exist."""

    @pytest.mark.asyncio
    async def test_insert_reports_migration_hint(self, bare_session: AsyncSession) -> None:
        repo = SqlBriefingRepository(bare_session)

        with pytest.raises(StorageError) as exc_info:
            await repo.create_briefing(ctx_for(), file_name="lease.pdf", summary="# S")

        assert exc_info.value.missing_table
        assert exc_info.value.message == MISSING_TABLE_MESSAGE
        assert "alembic upgrade head" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_list_reports_migration_hint(self, bare_session: AsyncSession) -> None:
        with pytest.raises(StorageError) as exc_info:
            await SqlBriefingRepository(bare_session).list_briefings(ctx_for())

        assert exc_info.value.missing_table

    @pytest.mark.asyncio
    async def test_route_returns_500_with_diagnostic(
        self, override_dependencies: None, bare_session: AsyncSession
    ) -> None:
        async def _repository() -> SqlBriefingRepository:
            return SqlBriefingRepository(bare_session)

        app.dependency_overrides[get_briefing_repository] = _repository
        async with asgi_client() as client:
            response = await client.post("/history", json={"fileName": "lease.pdf"})

        assert response.status_code == 500
        assert response.json() == {"message": MISSING_TABLE_MESSAGE}


class TestUnconfiguredDatabase:
    """History routes when DATABASE_URL is not set."""

    def test_resolve_database_url_requires_a_url(self) -> None:
        with pytest.raises(StorageError, match=NOT_CONFIGURED_MESSAGE):
            resolve_database_url(Settings(_env_file=None, database_url=None))

    def test_resolve_database_url_uses_async_drivers(self) -> None:
        postgres = Settings(_env_file=None, database_url="postgresql://u:p@db:5432/legal")
        sqlite = Settings(_env_file=None, database_url="sqlite:///./history.db")

        assert resolve_database_url(postgres) == "postgresql+asyncpg://u:p@db:5432/legal"
        assert resolve_database_url(sqlite) == "sqlite+aiosqlite:///./history.db"

    @pytest.mark.asyncio
    async def test_route_returns_500_with_message(self, override_dependencies: None) -> None:
        app.dependency_overrides.pop(get_briefing_repository)
        unconfigured = Settings(_env_file=None, database_url=None)

        with (
            patch("backend.app.db.engine.get_settings", return_value=unconfigured),
            patch("backend.app.db.engine._async_engine", None),
        ):
            async with asgi_client() as client:
                response = await client.post("/history", json={"fileName": "lease.pdf"})

        assert response.status_code == 500
        assert response.json() == {"message": NOT_CONFIGURED_MESSAGE}
