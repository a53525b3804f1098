"""Helper functions for UI clients - extraction, Q&A and history calls."""

import base64
import mimetypes
from pathlib import Path
from typing import Any

import httpx

from backend.app.config import get_settings
from backend.app.errors import (
    AuthenticationError,
    ExtractionEmptyError,
    GenerationError,
    InvalidInputError,
    LegalEaseError,
    StorageError,
    UnsupportedTypeError,
)
from backend.app.models.documents import Document
from backend.app.models.history import BriefingRecord
from ui.streaming import error_message

# Status codes the backend uses for each error type
_ERRORS_BY_STATUS: dict[int, type[LegalEaseError]] = {
    400: InvalidInputError,
    401: AuthenticationError,
    415: UnsupportedTypeError,
    422: ExtractionEmptyError,
    500: StorageError,
    502: GenerationError,
}

# Upload types browsers and mimetypes may not agree on
_MIME_OVERRIDES = {
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


def create_client(backend_url: str | None = None, timeout: float = 120.0) -> httpx.AsyncClient:
    """Create an async client for the backend (defaults to UI_BACKEND_URL)."""
    return httpx.AsyncClient(
        base_url=backend_url or get_settings().ui_backend_url,
        timeout=timeout,
    )


def get_auth_header(access_token: str | None) -> dict[str, str]:
    """Bearer header for the session's access token (empty when signed out)."""
    if not access_token:
        return {}
    return {"Authorization": f"Bearer {access_token}"}


def file_to_data_uri(path: str | Path, mime_type: str | None = None) -> str:
    """Read a file and encode it as a Base64 data URI.

    Args:
        path: File to read
        mime_type: Media type; guessed from the extension when omitted

    Returns:
        ``data:<mime-type>;base64,<payload>``
    """
    path = Path(path)
    if mime_type is None:
        suffix = path.suffix.lower()
        mime_type = _MIME_OVERRIDES.get(suffix) or mimetypes.guess_type(path.name)[0]
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type or 'application/octet-stream'};base64,{encoded}"


def raise_for_api_error(response: httpx.Response, default: str) -> None:
    """Raise the domain error matching a non-2xx backend response.

    Raises:
        LegalEaseError: Subclass chosen by status code, carrying the body's message
    """
    if response.is_success:
        return
    error_cls = _ERRORS_BY_STATUS.get(response.status_code, LegalEaseError)
    raise error_cls(error_message(response, default))


async def extract_document(
    client: httpx.AsyncClient, data_uri: str, file_name: str
) -> Document:
    """Call POST /extract.

    Raises:
        InvalidInputError, UnsupportedTypeError, ExtractionEmptyError: As reported by the backend
    """
    response = await client.post(
        "/extract", json={"fileDataUri": data_uri, "fileName": file_name}
    )
    raise_for_api_error(response, "Failed to extract text from the file.")
    data: dict[str, Any] = response.json()
    return Document(name=data["name"], text=data["text"])


async def detect_language(client: httpx.AsyncClient, text: str) -> str:
    """Call POST /qa/detect-language."""
    response = await client.post("/qa/detect-language", json={"text": text})
    raise_for_api_error(response, "Failed to detect language.")
    return str(response.json()["language"])


async def answer_question(
    client: httpx.AsyncClient,
    document_text: str,
    question: str,
    previous_answer: str | None = None,
) -> dict[str, Any]:
    """Call POST /qa/answer.

    Returns:
        ``{"answer": ..., "language": ...}``
    """
    body: dict[str, Any] = {"documentText": document_text, "question": question}
    if previous_answer:
        body["previousAnswer"] = previous_answer

    response = await client.post("/qa/answer", json=body)
    raise_for_api_error(response, "Failed to get an answer.")
    result: dict[str, Any] = response.json()
    return result


async def save_briefing(
    client: httpx.AsyncClient,
    access_token: str,
    file_name: str,
    summary: str | None,
) -> BriefingRecord:
    """Call POST /history.

    Raises:
        AuthenticationError: Session missing or expired
        StorageError: The backend could not store the record
    """
    response = await client.post(
        "/history",
        json={"fileName": file_name, "summary": summary},
        headers=get_auth_header(access_token),
    )
    raise_for_api_error(response, "Failed to save history.")
    return BriefingRecord.model_validate(response.json()["record"])


async def list_briefings(client: httpx.AsyncClient, access_token: str) -> list[BriefingRecord]:
    """Call GET /history (newest first)."""
    response = await client.get("/history", headers=get_auth_header(access_token))
    raise_for_api_error(response, "Failed to load history.")
    return [BriefingRecord.model_validate(record) for record in response.json()["records"]]
