"""SQL implementations of repository interfaces."""

import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.context import RequestContext
from backend.app.db.models import DocumentBriefing
from backend.app.db.repositories import HISTORY_LIMIT
from backend.app.errors import StorageError
from backend.app.models.history import BriefingRecord

logger = logging.getLogger(__name__)

# Postgres SQLSTATE for "relation does not exist"
UNDEFINED_TABLE = "42P01"

MISSING_TABLE_MESSAGE = (
    f"Database table '{DocumentBriefing.__tablename__}' is missing. "
    "Run the provided migration (alembic upgrade head) to create it before saving history."
)


def is_missing_table_error(error: SQLAlchemyError) -> bool:
    """Whether a driver error means the history table does not exist."""
    if isinstance(error, DBAPIError):
        orig = error.orig
        code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        if code == UNDEFINED_TABLE:
            return True

    text = str(error).lower()
    return "no such table" in text or (
        DocumentBriefing.__tablename__ in text and "does not exist" in text
    )


def _storage_error(error: SQLAlchemyError, action: str) -> StorageError:
    if is_missing_table_error(error):
        logger.error(f"History table missing while trying to {action}")
        return StorageError(MISSING_TABLE_MESSAGE, missing_table=True)

    logger.error(f"History storage failed to {action}: {type(error).__name__}: {error}")
    return StorageError(f"Failed to {action}.")


def _to_record(row: DocumentBriefing) -> BriefingRecord:
    return BriefingRecord(
        id=row.id,
        user_id=row.user_id,
        file_name=row.file_name,
        summary=row.summary,
        created_at=row.created_at,
    )


class SqlBriefingRepository:
    """SQL implementation of BriefingRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_briefing(
        self,
        ctx: RequestContext,
        *,
        file_name: str,
        summary: str | None,
        created_at: datetime | None = None,
    ) -> BriefingRecord:
        """Append a briefing for the caller."""
        row = DocumentBriefing(
            id=uuid.uuid4(),
            user_id=ctx.user_id,
            file_name=file_name,
            summary=summary,
        )
        if created_at is not None:
            row.created_at = created_at

        try:
            self._session.add(row)
            await self._session.commit()
            await self._session.refresh(row)
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise _storage_error(e, "save history") from e

        return _to_record(row)

    async def list_briefings(
        self, ctx: RequestContext, limit: int = HISTORY_LIMIT
    ) -> list[BriefingRecord]:
        """List the caller's briefings, newest first."""
        query = (
            select(DocumentBriefing)
            .where(DocumentBriefing.user_id == ctx.user_id)
            .order_by(DocumentBriefing.created_at.desc())
            .limit(limit)
        )

        try:
            result = await self._session.execute(query)
        except SQLAlchemyError as e:
            raise _storage_error(e, "load history") from e

        return [_to_record(row) for row in result.scalars().all()]
