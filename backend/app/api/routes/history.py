"""History endpoints - append and list document briefings for the caller."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_current_context
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.repositories import HISTORY_LIMIT, BriefingRepository
from backend.app.db.sql_repositories import SqlBriefingRepository
from backend.app.models.history import (
    BriefingListResponse,
    CreateBriefingRequest,
    CreateBriefingResponse,
)

router = APIRouter(prefix="/history", tags=["history"])
logger = logging.getLogger(__name__)


async def get_briefing_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> BriefingRepository:
    """FastAPI dependency for the SQL-backed briefing repository."""
    return SqlBriefingRepository(session)


@router.post("", response_model=CreateBriefingResponse, status_code=status.HTTP_201_CREATED)
async def create_briefing(
    request: CreateBriefingRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    repository: Annotated[BriefingRepository, Depends(get_briefing_repository)],
) -> CreateBriefingResponse:
    """Append a briefing to the caller's history.

    Args:
        request: File name and optional summary
        ctx: Request context (owner of the new record)
        repository: Briefing repository

    Returns:
        The stored record

    Raises:
        AuthenticationError: No valid session (401)
        StorageError: Insert failed, including a missing table diagnostic (500)
    """
    record = await repository.create_briefing(
        ctx, file_name=request.file_name, summary=request.summary
    )
    logger.info(
        f"Saved briefing {record.id}",
        extra={"structured": {"user_id": ctx.user_id, "file_name": record.file_name}},
    )
    return CreateBriefingResponse(record=record)


@router.get("", response_model=BriefingListResponse)
async def list_briefings(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    repository: Annotated[BriefingRepository, Depends(get_briefing_repository)],
) -> BriefingListResponse:
    """List the caller's most recent briefings, newest first."""
    records = await repository.list_briefings(ctx, limit=HISTORY_LIMIT)
    return BriefingListResponse(records=records)
