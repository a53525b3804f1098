"""Tests for the generation flows."""

from typing import Any
from unittest.mock import AsyncMock

import pytest

from backend.app.errors import InvalidInputError
from backend.app.llm.client import DeterministicStubClient
from backend.app.llm.flows import (
    answer_question,
    detect_language,
    stream_summary,
    stream_translation,
    summarize_document,
    translate_summary,
    translate_text,
)
from backend.app.llm.prompts import ANSWER_QUESTION, DETECT_LANGUAGE, TRANSLATE_TEXT
from backend.app.models.common import TranslationLanguage
from backend.app.models.generation import AnswerOutput, LanguageDetection

DOCUMENT = "The Tenant shall pay rent on the first day of each month."


@pytest.mark.asyncio
async def test_summarize_and_stream_agree(stub_client: DeterministicStubClient) -> None:
    single = await summarize_document(stub_client, DOCUMENT)

    stream = stream_summary(stub_client, DOCUMENT)
    final = await stream.response()

    assert final == single


@pytest.mark.asyncio
async def test_translation_stream_ends_with_translated_text(
    stub_client: DeterministicStubClient,
) -> None:
    summary = "**Rent**\n- Due on the first day"

    snapshots = [
        s.translated_text
        async for s in stream_translation(stub_client, summary, TranslationLanguage.telugu)
    ]
    single = await translate_summary(stub_client, summary, TranslationLanguage.telugu)

    assert snapshots[-1] == single.translated_text


@pytest.mark.asyncio
async def test_translate_text_uses_text_prompt() -> None:
    client = AsyncMock()
    client.generate.return_value = AnswerOutput(answer="unused")

    await translate_text(client, "Hello", TranslationLanguage.hindi)

    client.generate.assert_awaited_once_with(TRANSLATE_TEXT[TranslationLanguage.hindi], text="Hello")


@pytest.mark.asyncio
async def test_detect_language(stub_client: DeterministicStubClient) -> None:
    assert await detect_language(stub_client, "What is the notice period?") == "English"


@pytest.mark.asyncio
async def test_answer_detects_language_of_question(stub_client: DeterministicStubClient) -> None:
    output, language = await answer_question(
        stub_client, document_text=DOCUMENT, question="किराया कब देना है?"
    )

    assert language == "Hindi"
    assert "Hindi" in output.answer


@pytest.mark.asyncio
async def test_answer_passes_previous_answer_and_explicit_language() -> None:
    calls: list[tuple[str, dict[str, Any]]] = []

    class RecordingClient(DeterministicStubClient):
        async def generate(self, prompt, **params):  # type: ignore[no-untyped-def]
            calls.append((prompt.name, params))
            return await super().generate(prompt, **params)

    await answer_question(
        RecordingClient(),
        document_text=DOCUMENT,
        question="And the deposit?",
        previous_answer="Rent is due monthly.",
        target_language="English",
    )

    assert [name for name, _ in calls] == [ANSWER_QUESTION.name]
    assert calls[0][1]["previous_answer"] == "Rent is due monthly."


@pytest.mark.asyncio
async def test_answer_with_unknown_language_raises() -> None:
    client = AsyncMock()
    client.generate.return_value = LanguageDetection(language="Unknown")

    with pytest.raises(InvalidInputError, match="Could not determine the language"):
        await answer_question(client, document_text=DOCUMENT, question="???")

    client.generate.assert_awaited_once()
    assert client.generate.call_args.args[0] is DETECT_LANGUAGE
