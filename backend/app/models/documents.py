"""Document models - uploaded files and their extracted text."""

from typing import Any

from pydantic import BaseModel, field_validator

from backend.app.models.common import CamelModel, MediaType, require_text


class Document(BaseModel):
    """A document whose text has been extracted.

    Held by the client session; discarded when the user goes back to upload.
    """

    name: str
    text: str


class ExtractRequest(CamelModel):
    """Request body for POST /extract."""

    file_data_uri: str
    file_name: str | None = None

    @field_validator("file_data_uri", mode="before")
    @classmethod
    def _data_uri_present(cls, value: Any) -> str:
        return require_text(value, "fileDataUri")


class ExtractResponse(CamelModel):
    """Response for POST /extract."""

    name: str
    text: str
    media_type: MediaType
