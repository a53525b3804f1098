"""Structured output shapes declared by the prompt templates."""

from pydantic import BaseModel, Field

from backend.app.models.common import DetectedLanguage


class SummaryOutput(BaseModel):
    """Plain-language summary of a legal document."""

    summary: str = Field(..., description="Markdown summary of the key points in the document")


class TranslationOutput(BaseModel):
    """Translated text (summary or free text)."""

    translated_text: str = Field(..., description="The translated markdown text")


class AnswerOutput(BaseModel):
    """Answer to a question about a document."""

    answer: str = Field(..., description="Answer based strictly on the document content")


class LanguageDetection(BaseModel):
    """Detected language of a piece of text."""

    language: DetectedLanguage = Field(..., description="English, Hindi, Telugu or Unknown")
