"""Models package - re-exports for convenience."""

from backend.app.models.common import (
    CamelModel,
    DetectedLanguage,
    MediaType,
    QALanguage,
    TranslationLanguage,
)
from backend.app.models.documents import Document, ExtractRequest, ExtractResponse
from backend.app.models.events import DoneEvent, ErrorEvent, ProgressEvent, StreamEvent
from backend.app.models.generation import (
    AnswerOutput,
    LanguageDetection,
    SummaryOutput,
    TranslationOutput,
)
from backend.app.models.history import BriefingRecord, CreateBriefingRequest
from backend.app.models.qa import Message

__all__ = [
    # Common
    "CamelModel",
    "DetectedLanguage",
    "MediaType",
    "QALanguage",
    "TranslationLanguage",
    # Documents
    "Document",
    "ExtractRequest",
    "ExtractResponse",
    # Stream events
    "ProgressEvent",
    "DoneEvent",
    "ErrorEvent",
    "StreamEvent",
    # Generation outputs
    "SummaryOutput",
    "TranslationOutput",
    "AnswerOutput",
    "LanguageDetection",
    # History
    "BriefingRecord",
    "CreateBriefingRequest",
    # Q&A
    "Message",
]
