"""Common types and enums shared across all models."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError


class CamelModel(BaseModel):
    """Base model for API payloads: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MediaType(str, Enum):
    """Document formats the decoder can extract text from."""

    docx = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    pptx = "application/vnd.openxmlformats-officedocument.presentationml.presentation"
    pdf = "application/pdf"
    jpeg = "image/jpeg"
    png = "image/png"

    @property
    def is_image(self) -> bool:
        return self in (MediaType.jpeg, MediaType.png)


class TranslationLanguage(str, Enum):
    """Target languages for summary translation (one streaming slot each)."""

    hindi = "hindi"
    telugu = "telugu"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


QALanguage = Literal["English", "Hindi", "Telugu"]
DetectedLanguage = Literal["English", "Hindi", "Telugu", "Unknown"]


def require_text(value: Any, field: str) -> str:
    """Validate that a request field is a non-blank string.

    Raises a pydantic error whose message is shown to the user verbatim.
    """
    if not isinstance(value, str) or not value.strip():
        raise PydanticCustomError("blank_text", f"{field} is required.")
    return value


def parse_translation_language(value: Any) -> TranslationLanguage:
    """Coerce a request value into a supported translation language."""
    if isinstance(value, TranslationLanguage):
        return value
    if isinstance(value, str):
        try:
            return TranslationLanguage(value.strip().lower())
        except ValueError:
            pass
    raise PydanticCustomError("unsupported_language", "Unsupported language.")
