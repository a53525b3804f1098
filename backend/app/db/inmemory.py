"""In-memory implementations of repository interfaces."""

import uuid
from datetime import datetime, timedelta, timezone

from backend.app.db.context import RequestContext
from backend.app.db.repositories import HISTORY_LIMIT, RetryAfter
from backend.app.models.history import BriefingRecord


class InMemoryBriefingRepository:
    """In-memory implementation of BriefingRepository."""

    def __init__(self) -> None:
        self._records: list[BriefingRecord] = []

    async def create_briefing(
        self,
        ctx: RequestContext,
        *,
        file_name: str,
        summary: str | None,
        created_at: datetime | None = None,
    ) -> BriefingRecord:
        """Append a briefing for the caller."""
        record = BriefingRecord(
            id=uuid.uuid4(),
            user_id=ctx.user_id,
            file_name=file_name,
            summary=summary,
            created_at=created_at or datetime.now(timezone.utc),
        )
        self._records.append(record)
        return record

    async def list_briefings(
        self, ctx: RequestContext, limit: int = HISTORY_LIMIT
    ) -> list[BriefingRecord]:
        """List the caller's briefings, newest first."""
        # Enforce ownership; newest insertion first so equal timestamps keep that order
        results = [r for r in reversed(self._records) if r.user_id == ctx.user_id]

        # Sort by created_at descending
        results.sort(key=lambda x: x.created_at, reverse=True)

        return results[:limit]


class InMemoryRateLimiter:
    """In-memory implementation of RateLimiter using fixed window."""

    def __init__(self, max_requests: int, window_seconds: int = 60) -> None:
        """Initialize rate limiter.

        Args:
            max_requests: Maximum requests per window
            window_seconds: Window size in seconds (default 60)
        """
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._windows: dict[str, tuple[datetime, int]] = {}

    def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Check if quota is available."""
        window = self._windows.get(key)

        if window is None or now >= window[0] + timedelta(seconds=self._window_seconds):
            # First request or expired window
            self._windows[key] = (now, 1)
            return None

        window_start, count = window
        if count >= self._max_requests:
            seconds_remaining = int(
                (window_start + timedelta(seconds=self._window_seconds) - now).total_seconds()
            )
            return RetryAfter(seconds=max(1, seconds_remaining))

        self._windows[key] = (window_start, count + 1)
        return None
