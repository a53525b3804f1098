"""Rate limiting for generation and extraction endpoints.

Maps request paths to buckets and enforces a fixed-window quota per caller.
Over quota -> 429 with a Retry-After header.
"""

import hashlib
import logging
from datetime import datetime

import redis
from fastapi import HTTPException, Request, status

from backend.app.api.auth import parse_bearer_token
from backend.app.config import get_settings
from backend.app.db.inmemory import InMemoryRateLimiter
from backend.app.db.repositories import RateLimiter
from backend.app.errors import AuthenticationError
from backend.app.ratelimit import RedisRateLimiter, make_rate_limit_key

logger = logging.getLogger(__name__)


class RateLimitMiddleware:
    """Maps request paths to buckets and enforces rate limits."""

    def __init__(self, limiter: RateLimiter, bucket_map: dict[str, str]) -> None:
        """Initialize rate limit middleware.

        Args:
            limiter: Rate limiter implementation
            bucket_map: Mapping from path prefixes to bucket names
        """
        self._limiter = limiter
        self._bucket_map = bucket_map

    def check_rate_limit(
        self, path: str, client_id: str, now: datetime | None = None
    ) -> tuple[bool, int]:
        """Check if request is allowed under rate limit.

        Args:
            path: Request path
            client_id: Caller identity
            now: Current time (for testing)

        Returns:
            Tuple of (allowed, retry_after_seconds)
        """
        if now is None:
            now = datetime.now()

        bucket = self._get_bucket(path)

        if bucket is None:
            # No rate limit for this path
            return (True, 0)

        key = make_rate_limit_key(client_id, bucket)
        retry_after = self._limiter.check_quota(key, now)

        if retry_after is None:
            return (True, 0)

        return (False, retry_after.seconds)

    def _get_bucket(self, path: str) -> str | None:
        for prefix, bucket in self._bucket_map.items():
            if path == prefix or path.startswith(prefix + "/"):
                return bucket

        return None


def create_default_bucket_map() -> dict[str, str]:
    """Create default bucket mapping.

    Returns:
        Dictionary mapping path prefixes to bucket names
    """
    return {
        "/extract": "extraction",
        "/summary": "generation",
        "/translation": "generation",
        "/qa": "generation",
    }


def client_identity(request: Request) -> str:
    """Identify the caller: bearer token when present, else client host."""
    try:
        token = parse_bearer_token(request.headers.get("authorization"))
        return f"token:{hashlib.sha256(token.encode()).hexdigest()[:16]}"
    except AuthenticationError:
        host = request.client.host if request.client else "unknown"
        return f"host:{host}"


_middleware: RateLimitMiddleware | None = None


def get_rate_limit_middleware() -> RateLimitMiddleware:
    """Get the process-wide rate limiter (Redis when configured)."""
    global _middleware
    if _middleware is None:
        settings = get_settings()
        limiter: RateLimiter
        if settings.redis_url:
            client = redis.from_url(settings.redis_url, decode_responses=True)  # type: ignore[no-untyped-call]
            limiter = RedisRateLimiter(client, settings.generation_requests_per_min)
        else:
            limiter = InMemoryRateLimiter(settings.generation_requests_per_min)
        _middleware = RateLimitMiddleware(limiter, create_default_bucket_map())
    return _middleware


def reset_rate_limit_middleware() -> None:
    """Forget the process-wide limiter (tests and settings reloads)."""
    global _middleware
    _middleware = None


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency: reject over-quota callers with 429.

    Raises:
        HTTPException: 429 with Retry-After when over quota
    """
    middleware = get_rate_limit_middleware()
    allowed, retry_after = middleware.check_rate_limit(
        request.url.path, client_identity(request)
    )

    if not allowed:
        logger.warning(f"Rate limit exceeded on {request.url.path}, retry in {retry_after}s")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later.",
            headers={"Retry-After": str(retry_after)},
        )
