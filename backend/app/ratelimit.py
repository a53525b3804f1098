"""Fixed-window request quotas shared across workers through Redis."""

from datetime import datetime

import redis

from backend.app.db.repositories import RetryAfter

KEY_PREFIX = "legalease:ratelimit"


def make_rate_limit_key(client_id: str, bucket: str) -> str:
    """Quota key for one caller in one bucket (e.g. "host:10.0.0.1:generation")."""
    return f"{client_id}:{bucket}"


class RedisRateLimiter:
    """Counts requests per window in Redis.

    Each window gets its own counter key, so counters never need resetting;
    the key expires with its window.
    """

    def __init__(self, redis_client: redis.Redis, max_requests: int, window_seconds: int = 60) -> None:
        self._redis = redis_client
        self._max_requests = max_requests
        self._window_seconds = window_seconds

    def _window_key(self, key: str, now: datetime) -> str:
        window_index = int(now.timestamp()) // self._window_seconds
        return f"{KEY_PREFIX}:{key}:{window_index}"

    def check_quota(self, key: str, now: datetime) -> RetryAfter | None:
        """Count this request against the current window.

        Returns:
            RetryAfter with the seconds left in the window if over quota, None if allowed
        """
        window_key = self._window_key(key, now)

        pipe = self._redis.pipeline()
        pipe.incr(window_key)
        pipe.ttl(window_key)
        count, ttl = pipe.execute()

        # ttl is -1 when the counter was just created without an expiry
        if int(ttl) < 0:
            self._redis.expire(window_key, self._window_seconds)
            ttl = self._window_seconds

        if int(count) <= self._max_requests:
            return None
        return RetryAfter(seconds=max(1, int(ttl)))
