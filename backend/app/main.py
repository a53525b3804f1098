"""FastAPI application - LegalEase briefing service."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.api.routes.extract import router as extract_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.history import router as history_router
from backend.app.api.routes.metrics import router as metrics_router
from backend.app.api.routes.qa import router as qa_router
from backend.app.api.routes.summary import router as summary_router
from backend.app.api.routes.translation import router as translation_router
from backend.app.db.engine import dispose_async_engine
from backend.app.errors import LegalEaseError
from backend.app.extraction.ocr import terminate_ocr_engine

logger = logging.getLogger(__name__)

# Validation error types whose message is already user-facing
_USER_FACING_ERRORS = {"blank_text", "unsupported_language"}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Shutdown: release the OCR worker and database connections."""
    yield
    await terminate_ocr_engine()
    await dispose_async_engine()


app = FastAPI(title="LegalEase API", version="0.1.0", lifespan=lifespan)


def validation_message(errors: list[Any]) -> str:
    """Collapse request validation errors into one human-readable message.

    Only the first error is reported; field names are the camelCase wire names.
    """
    if not errors:
        return "Invalid request."

    error = errors[0]
    error_type = error.get("type")
    loc = [str(part) for part in error.get("loc", ()) if part != "body"]

    if error_type in _USER_FACING_ERRORS:
        return str(error.get("msg"))

    if not loc:
        return "Request body is required." if error_type == "missing" else "Invalid request body."

    field = ".".join(loc)
    if error_type == "missing":
        return f"{field} is required."
    return f"{field}: {error.get('msg')}"


@app.exception_handler(LegalEaseError)
async def legalease_error_handler(request: Request, exc: LegalEaseError) -> JSONResponse:
    """Render domain errors as ``{message}`` with their status code."""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400 ``{message}``."""
    return JSONResponse(status_code=400, content={"message": validation_message(exc.errors())})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors (404, 405, 429, ...) as ``{message}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(extract_router)
app.include_router(summary_router)
app.include_router(translation_router)
app.include_router(qa_router)
app.include_router(history_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "LegalEase API", "version": "0.1.0"}
