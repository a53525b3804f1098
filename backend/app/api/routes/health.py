"""Health check endpoints.

- /health: liveness, always 200 while the process runs
- /healthz: checks DB and Redis connectivity and reports component status
"""

import json
from typing import Any

import redis
from fastapi import APIRouter, Response
from sqlalchemy import text

from backend.app.config import Settings, get_settings
from backend.app.db.engine import get_async_engine
from backend.app.extraction.ocr import get_ocr_engine

router = APIRouter()


async def check_db() -> tuple[bool, str]:
    """Check database connectivity.

    Returns:
        (is_ok, status_message)
    """
    try:
        async with get_async_engine().connect() as connection:
            await connection.execute(text("SELECT 1"))
        return (True, "ok")
    except Exception as e:
        return (False, f"error: {type(e).__name__}")


async def check_redis(settings: Settings) -> tuple[bool, str]:
    """Check Redis connectivity.

    Returns:
        (is_ok, status_message)
    """
    if not settings.redis_url:
        return (True, "not_configured")

    try:
        client = redis.from_url(settings.redis_url, decode_responses=True)  # type: ignore[no-untyped-call]
        client.ping()
        return (True, "ok")
    except Exception as e:
        return (False, f"error: {type(e).__name__}")


def check_ocr() -> str:
    """Report OCR worker state without forcing initialisation."""
    return "ready" if get_ocr_engine().initialized else "lazy"


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz", response_model=None)
async def healthz() -> dict[str, Any] | Response:
    """Health check endpoint.

    Returns:
        200 with component status if core systems ok
        503 if critical components fail
    """
    settings = get_settings()

    db_ok, db_status = await check_db()
    redis_ok, redis_status = await check_redis(settings)

    # Core dependencies are DB and Redis
    core_ok = db_ok and redis_ok

    response_body = {
        "status": "ok" if core_ok else "degraded",
        "components": {
            "db": db_status,
            "redis": redis_status,
            "ocr": check_ocr(),
        },
    }

    if not core_ok:
        return Response(
            content=json.dumps(response_body),
            status_code=503,
            media_type="application/json",
        )

    return response_body
