"""Generation flows: summarize, translate, detect language, answer questions."""

import logging
from typing import cast

from backend.app.errors import InvalidInputError
from backend.app.llm.client import GenerationClient, GenerationStream
from backend.app.llm.prompts import (
    ANSWER_QUESTION,
    DETECT_LANGUAGE,
    SUMMARIZE_DOCUMENT,
    TRANSLATE_SUMMARY,
    TRANSLATE_TEXT,
)
from backend.app.models.common import DetectedLanguage, QALanguage, TranslationLanguage
from backend.app.models.generation import (
    AnswerOutput,
    LanguageDetection,
    SummaryOutput,
    TranslationOutput,
)

logger = logging.getLogger(__name__)


async def summarize_document(client: GenerationClient, document_text: str) -> SummaryOutput:
    """Summarize a legal document in one call."""
    output = await client.generate(SUMMARIZE_DOCUMENT, document_text=document_text)
    return cast(SummaryOutput, output)


def stream_summary(client: GenerationClient, document_text: str) -> GenerationStream[SummaryOutput]:
    """Summarize a legal document as a stream of snapshots."""
    return client.stream(SUMMARIZE_DOCUMENT, document_text=document_text)


async def translate_summary(
    client: GenerationClient, summary: str, language: TranslationLanguage
) -> TranslationOutput:
    """Translate a summary, preserving its markdown formatting."""
    output = await client.generate(TRANSLATE_SUMMARY[language], summary=summary)
    return cast(TranslationOutput, output)


def stream_translation(
    client: GenerationClient, summary: str, language: TranslationLanguage
) -> GenerationStream[TranslationOutput]:
    """Translate a summary as a stream of snapshots."""
    return client.stream(TRANSLATE_SUMMARY[language], summary=summary)


async def translate_text(
    client: GenerationClient, text: str, language: TranslationLanguage
) -> TranslationOutput:
    """Translate arbitrary text."""
    output = await client.generate(TRANSLATE_TEXT[language], text=text)
    return cast(TranslationOutput, output)


async def detect_language(client: GenerationClient, text: str) -> DetectedLanguage:
    """Detect whether text is English, Hindi or Telugu ("Unknown" otherwise)."""
    output = cast(LanguageDetection, await client.generate(DETECT_LANGUAGE, text=text))
    return output.language


async def answer_question(
    client: GenerationClient,
    *,
    document_text: str,
    question: str,
    previous_answer: str | None = None,
    target_language: QALanguage | None = None,
) -> tuple[AnswerOutput, QALanguage]:
    """Answer a question about a document in the question's language.

    When ``target_language`` is not given it is detected from the question.

    Raises:
        InvalidInputError: If the question's language cannot be determined
    """
    if target_language is None:
        detected = await detect_language(client, question)
        if detected == "Unknown":
            raise InvalidInputError("Could not determine the language of the question.")
        target_language = detected

    logger.info(f"Answering question in {target_language}")
    output = await client.generate(
        ANSWER_QUESTION,
        document_text=document_text,
        question=question,
        previous_answer=previous_answer,
        target_language=target_language,
    )
    return cast(AnswerOutput, output), target_language
