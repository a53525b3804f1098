"""Database engine and session factory."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from backend.app.config import Settings, get_settings
from backend.app.errors import StorageError

NOT_CONFIGURED_MESSAGE = "History storage is not configured."

_ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def resolve_database_url(settings: Settings) -> str:
    """Get the configured database URL with an async driver.

    Raises:
        StorageError: If DATABASE_URL is unset
    """
    database_url = (settings.database_url or "").strip()
    if not database_url:
        raise StorageError(NOT_CONFIGURED_MESSAGE)

    for prefix, async_prefix in _ASYNC_DRIVERS.items():
        if database_url.startswith(prefix):
            return async_prefix + database_url[len(prefix) :]
    return database_url


def create_async_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create async SQLAlchemy engine from settings.

    Raises:
        StorageError: If DATABASE_URL is unset
    """
    return create_async_engine(resolve_database_url(settings), pool_pre_ping=True, echo=False)


# Global async engine
_async_engine: AsyncEngine | None = None


def get_async_engine() -> AsyncEngine:
    """Get global async engine instance."""
    global _async_engine
    if _async_engine is None:
        _async_engine = create_async_engine_from_settings(get_settings())
    return _async_engine


async def dispose_async_engine() -> None:
    """Shutdown hook: dispose the global engine if one was created."""
    global _async_engine
    if _async_engine is not None:
        await _async_engine.dispose()
        _async_engine = None


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for async database session.

    Yields:
        AsyncSession instance

    Raises:
        StorageError: If no database is configured
    """
    async with AsyncSession(get_async_engine(), expire_on_commit=False) as session:
        yield session
