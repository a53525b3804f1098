"""Q&A models - chat messages and request/response bodies."""

import uuid
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from backend.app.models.common import (
    CamelModel,
    DetectedLanguage,
    QALanguage,
    TranslationLanguage,
    parse_translation_language,
    require_text,
)


class Message(BaseModel):
    """A single Q&A message. Sessions keep them in append-only order."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: Literal["user", "assistant"]
    content: str


class DetectLanguageRequest(CamelModel):
    """Request body for POST /qa/detect-language."""

    text: str

    @field_validator("text", mode="before")
    @classmethod
    def _text_present(cls, value: Any) -> str:
        return require_text(value, "text")


class DetectLanguageResponse(CamelModel):
    """Response for POST /qa/detect-language."""

    language: DetectedLanguage


class AnswerRequest(CamelModel):
    """Request body for POST /qa/answer."""

    document_text: str
    question: str
    previous_answer: str | None = None

    @field_validator("document_text", mode="before")
    @classmethod
    def _document_present(cls, value: Any) -> str:
        return require_text(value, "documentText")

    @field_validator("question", mode="before")
    @classmethod
    def _question_present(cls, value: Any) -> str:
        return require_text(value, "question")


class AnswerResponse(CamelModel):
    """Response for POST /qa/answer."""

    answer: str
    language: QALanguage


class SummaryRequest(CamelModel):
    """Request body for POST /summary and POST /summary/stream."""

    document_text: str

    @field_validator("document_text", mode="before")
    @classmethod
    def _document_present(cls, value: Any) -> str:
        return require_text(value, "documentText")


class SummaryResponse(CamelModel):
    """Response for POST /summary."""

    summary: str


class TranslationRequest(CamelModel):
    """Request body for POST /translation and POST /translation/stream."""

    summary: str
    language: TranslationLanguage

    @field_validator("summary", mode="before")
    @classmethod
    def _summary_present(cls, value: Any) -> str:
        return require_text(value, "summary")

    @field_validator("language", mode="before")
    @classmethod
    def _supported_language(cls, value: Any) -> TranslationLanguage:
        return parse_translation_language(value)


class TextTranslationRequest(CamelModel):
    """Request body for POST /translation/text."""

    text: str
    language: TranslationLanguage

    @field_validator("text", mode="before")
    @classmethod
    def _text_present(cls, value: Any) -> str:
        return require_text(value, "text")

    @field_validator("language", mode="before")
    @classmethod
    def _supported_language(cls, value: Any) -> TranslationLanguage:
        return parse_translation_language(value)


class TranslationResponse(CamelModel):
    """Response for POST /translation and POST /translation/text."""

    translation: str
    language: TranslationLanguage
