"""Integration tests for the translation endpoints."""

import json

import pytest
from fastapi.testclient import TestClient

from backend.app.main import app
from backend.app.utils.metrics import generation_streams_total

SUMMARY = "# Summary\n\n**Parties**\n- Landlord: Ravi Kumar\n- Tenant: Sita Devi\n\n**Rent**\n- 15,000"


@pytest.fixture
def client(override_dependencies: None) -> TestClient:
    return TestClient(app)


def parse_frames(body: str) -> list[dict[str, str]]:
    return [json.loads(block.strip()[6:]) for block in body.split("\n\n") if block.strip()]


@pytest.mark.parametrize("language", ["hindi", "telugu", "Hindi"])
def test_stream_translation_uses_translation_key(client: TestClient, language: str) -> None:
    response = client.post("/translation/stream", json={"summary": SUMMARY, "language": language})

    assert response.status_code == 200
    events = parse_frames(response.text)
    assert events[-1]["type"] == "done"
    assert all("translation" in event for event in events)
    assert [e["type"] for e in events].count("done") == 1


def test_stream_translation_preserves_markdown_tokens(client: TestClient) -> None:
    response = client.post("/translation/stream", json={"summary": SUMMARY, "language": "hindi"})

    final = parse_frames(response.text)[-1]["translation"]
    assert final.count("**") == SUMMARY.count("**")
    assert final.count("\n- ") == SUMMARY.count("\n- ")
    assert final.startswith("# ")


def test_stream_translation_records_per_language_outcome(client: TestClient) -> None:
    counter = generation_streams_total.labels(slot="translation:telugu", outcome="completed")
    before = counter._value.get()

    client.post("/translation/stream", json={"summary": SUMMARY, "language": "telugu"})

    assert counter._value.get() == before + 1


@pytest.mark.parametrize("path", ["/translation/stream", "/translation"])
def test_unsupported_language_is_rejected(client: TestClient, path: str) -> None:
    response = client.post(path, json={"summary": SUMMARY, "language": "french"})

    assert response.status_code == 400
    assert response.json() == {"message": "Unsupported language."}


def test_blank_summary_is_rejected(client: TestClient) -> None:
    response = client.post("/translation/stream", json={"summary": " ", "language": "hindi"})

    assert response.status_code == 400
    assert response.json() == {"message": "summary is required."}


def test_single_shot_translation(client: TestClient) -> None:
    response = client.post("/translation", json={"summary": SUMMARY, "language": "telugu"})

    assert response.status_code == 200
    assert response.json() == {"translation": SUMMARY, "language": "telugu"}


def test_text_translation(client: TestClient) -> None:
    response = client.post("/translation/text", json={"text": "Notice period", "language": "hindi"})

    assert response.status_code == 200
    assert response.json()["translation"] == "Notice period"


def test_text_translation_requires_text(client: TestClient) -> None:
    response = client.post("/translation/text", json={"language": "hindi"})

    assert response.status_code == 400
    assert response.json() == {"message": "text is required."}
