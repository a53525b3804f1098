"""Unit tests for UI helper functions."""

import base64
import json
from pathlib import Path

import httpx
import pytest

from backend.app.errors import (
    AuthenticationError,
    ExtractionEmptyError,
    GenerationError,
    InvalidInputError,
    LegalEaseError,
    StorageError,
    UnsupportedTypeError,
)
from ui.helpers import (
    answer_question,
    create_client,
    detect_language,
    extract_document,
    file_to_data_uri,
    get_auth_header,
    list_briefings,
    raise_for_api_error,
)


def test_get_auth_header() -> None:
    assert get_auth_header("abc") == {"Authorization": "Bearer abc"}
    assert get_auth_header(None) == {}
    assert get_auth_header("") == {}


@pytest.mark.parametrize(
    ("name", "mime"),
    [
        ("lease.pdf", "application/pdf"),
        ("lease.DOCX", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ("deck.pptx", "application/vnd.openxmlformats-officedocument.presentationml.presentation"),
        ("scan.jpg", "image/jpeg"),
        ("scan.png", "image/png"),
    ],
)
def test_file_to_data_uri_guesses_media_type(tmp_path: Path, name: str, mime: str) -> None:
    path = tmp_path / name
    path.write_bytes(b"\x00\x01payload")

    uri = file_to_data_uri(path)

    header, payload = uri.split(",", 1)
    assert header == f"data:{mime};base64"
    assert base64.b64decode(payload) == b"\x00\x01payload"


def test_file_to_data_uri_unknown_extension(tmp_path: Path) -> None:
    path = tmp_path / "notes.zzz-unknown"
    path.write_bytes(b"x")

    assert file_to_data_uri(path).startswith("data:application/octet-stream;base64,")


@pytest.mark.parametrize(
    ("status", "error_cls"),
    [
        (400, InvalidInputError),
        (401, AuthenticationError),
        (415, UnsupportedTypeError),
        (422, ExtractionEmptyError),
        (500, StorageError),
        (502, GenerationError),
    ],
)
def test_raise_for_api_error_maps_status(status: int, error_cls: type[LegalEaseError]) -> None:
    response = httpx.Response(status, json={"message": "Backend said no."})

    with pytest.raises(error_cls) as exc_info:
        raise_for_api_error(response, "default")

    assert exc_info.value.message == "Backend said no."


def test_raise_for_api_error_unknown_status_uses_base_error() -> None:
    response = httpx.Response(429, text="slow down")

    with pytest.raises(LegalEaseError) as exc_info:
        raise_for_api_error(response, "Failed to get an answer.")

    assert type(exc_info.value) is LegalEaseError
    assert exc_info.value.message == "Failed to get an answer."


def test_raise_for_api_error_passes_success() -> None:
    raise_for_api_error(httpx.Response(200, json={}), "unused")


def test_create_client_uses_backend_url() -> None:
    client = create_client("http://backend:9000")

    assert client.base_url.host == "backend"
    assert client.base_url.port == 9000


@pytest.mark.asyncio
async def test_extract_document_sends_camel_case_body() -> None:
    sent: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(
            200, json={"name": "lease.pdf", "text": "Rent is due.", "mediaType": "application/pdf"}
        )

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        document = await extract_document(client, "data:application/pdf;base64,AA==", "lease.pdf")

    assert sent == [{"fileDataUri": "data:application/pdf;base64,AA==", "fileName": "lease.pdf"}]
    assert document.name == "lease.pdf"
    assert document.text == "Rent is due."


@pytest.mark.asyncio
async def test_extract_document_raises_backend_error() -> None:
    transport = httpx.MockTransport(
        lambda request: httpx.Response(415, json={"message": "Unsupported file type: text/csv"})
    )
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        with pytest.raises(UnsupportedTypeError, match="text/csv"):
            await extract_document(client, "data:text/csv;base64,AA==", "data.csv")


@pytest.mark.asyncio
async def test_detect_language_and_answer() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/qa/detect-language":
            return httpx.Response(200, json={"language": "Telugu"})
        body = json.loads(request.content)
        return httpx.Response(200, json={"answer": body.get("previousAnswer", ""), "language": "English"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        language = await detect_language(client, "అద్దె")
        result = await answer_question(client, "doc", "Q?", previous_answer="Earlier")

    assert language == "Telugu"
    assert result == {"answer": "Earlier", "language": "English"}


@pytest.mark.asyncio
async def test_list_briefings_requires_session() -> None:
    transport = httpx.MockTransport(
        lambda request: httpx.Response(401, json={"message": "Authentication required."})
    )
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        with pytest.raises(AuthenticationError, match="Authentication required."):
            await list_briefings(client, "expired")
