"""Briefing history models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, field_validator

from backend.app.models.common import CamelModel, require_text


class BriefingRecord(BaseModel):
    """A persisted summary of an uploaded document.

    Field names match the document_briefings table, not the camelCase API.
    """

    id: UUID
    user_id: str
    file_name: str
    summary: str | None
    created_at: datetime


class CreateBriefingRequest(CamelModel):
    """Request body for POST /history."""

    file_name: str
    summary: str | None = None

    @field_validator("file_name", mode="before")
    @classmethod
    def _file_name_present(cls, value: Any) -> str:
        return require_text(value, "fileName")


class CreateBriefingResponse(BaseModel):
    """Response for POST /history."""

    record: BriefingRecord


class BriefingListResponse(BaseModel):
    """Response for GET /history."""

    records: list[BriefingRecord]
