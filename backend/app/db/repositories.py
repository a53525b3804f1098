"""Repository protocol interfaces for data access."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from backend.app.db.context import RequestContext
from backend.app.models.history import BriefingRecord

# Most recent records returned by a history listing
HISTORY_LIMIT = 20


class BriefingRepository(Protocol):
    """Repository for document briefing history."""

    async def create_briefing(
        self,
        ctx: RequestContext,
        *,
        file_name: str,
        summary: str | None,
        created_at: datetime | None = None,
    ) -> BriefingRecord:
        """Append a briefing for the caller.

        Args:
            ctx: Request context (owner of the record)
            file_name: Name of the briefed file
            summary: Final summary, if one was generated
            created_at: Insert timestamp (defaults to now)

        Returns:
            The stored record

        Raises:
            StorageError: If the insert fails
        """
        ...

    async def list_briefings(
        self, ctx: RequestContext, limit: int = HISTORY_LIMIT
    ) -> list[BriefingRecord]:
        """List the caller's briefings, newest first.

        Args:
            ctx: Request context (enforces ownership)
            limit: Maximum number of results

        Returns:
            List of briefing records

        Raises:
            StorageError: If the query fails
        """
        ...


@dataclass
class RetryAfter:
    """Rate limit retry-after information."""

    seconds: int


class RateLimiter(Protocol):
    """Rate limiter interface."""

    def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Check if quota is available.

        Args:
            key: Rate limit key
            now: Current timestamp

        Returns:
            RetryAfter if over quota, None if allowed
        """
        ...
