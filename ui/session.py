"""Client session state for one document: summary, translations and Q&A.

Slots: ``summary``, ``hindi`` and ``telugu``. Each slot runs at most one
stream at a time; every callback checks that its token is still the slot's
active one before touching state.
"""

import logging
from enum import Enum

import httpx

from backend.app.errors import GenerationError, InvalidInputError, LegalEaseError
from backend.app.models.common import TranslationLanguage
from backend.app.models.documents import Document
from backend.app.models.history import BriefingRecord
from backend.app.models.qa import Message
from ui.helpers import answer_question, save_briefing
from ui.streaming import StreamOutcome, StreamSlots, consume_sse

logger = logging.getLogger(__name__)

SUMMARY_SLOT = "summary"
SUMMARY_FAILED = "Failed to generate a summary for the document."


class SlotStatus(str, Enum):
    """Per-slot UI state."""

    idle = "idle"
    streaming = "streaming"
    ready = "ready"


class BriefingSession:
    """Summary and translation state for one uploaded document.

    Translations can only start once the summary is ready. The final summary
    is saved to history at most once per document, and only when the user
    has a session token.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        document: Document,
        *,
        access_token: str | None = None,
    ) -> None:
        """Initialize session.

        Args:
            client: HTTP client for the backend
            document: Extracted document being briefed
            access_token: Session token; history is only saved when present
        """
        self.client = client
        self.document = document
        self.access_token = access_token
        self.slots = StreamSlots()

        self.summary = ""
        self.summary_status = SlotStatus.idle
        self.translations: dict[TranslationLanguage, str] = {}
        self.translation_status: dict[TranslationLanguage, SlotStatus] = {}
        self.last_error: str | None = None

        self.history_saved = False
        self.history_record: BriefingRecord | None = None
        self.history_error: str | None = None

    @property
    def is_streaming(self) -> bool:
        return bool(self.slots.active_slots())

    async def start_summary(self) -> StreamOutcome:
        """Stream the summary, replacing any summary stream already running.

        Translations of a previous summary are discarded.

        Raises:
            GenerationError: If the stream fails (the slot returns to idle)
        """
        for language in TranslationLanguage:
            self.slots.cancel(language.value)
        token = self.slots.start(SUMMARY_SLOT)

        self.summary = ""
        self.summary_status = SlotStatus.streaming
        self.translations = {}
        self.translation_status = {}
        final_summary: str | None = None

        def on_progress(snapshot: str) -> None:
            if self.slots.is_active(SUMMARY_SLOT, token):
                self.summary = snapshot

        def on_done(final: str) -> None:
            nonlocal final_summary
            if not self.slots.is_active(SUMMARY_SLOT, token):
                return
            if final:
                self.summary = final
                final_summary = final
            self.summary_status = SlotStatus.ready

        try:
            outcome = await consume_sse(
                self.client,
                "/summary/stream",
                {"documentText": self.document.text},
                on_progress=on_progress,
                on_done=on_done,
                token=token,
            )
        except GenerationError as e:
            if self.slots.is_active(SUMMARY_SLOT, token):
                self.summary = SUMMARY_FAILED
                self.summary_status = SlotStatus.idle
                self.last_error = e.message
            raise
        finally:
            self.slots.finish(SUMMARY_SLOT, token)

        if outcome is StreamOutcome.COMPLETED and final_summary:
            await self._persist_summary(final_summary)
        return outcome

    async def start_translation(self, language: TranslationLanguage) -> StreamOutcome | None:
        """Stream a translation of the ready summary into the language's slot.

        Returns None without starting anything when the translation already
        exists or is streaming.

        Raises:
            InvalidInputError: If the summary is not ready yet
            GenerationError: If the stream fails (the slot returns to idle)
        """
        if self.summary_status is not SlotStatus.ready or not self.summary:
            raise InvalidInputError("Translations will be available once the summary is ready.")

        if language in self.translations or (
            self.translation_status.get(language) is SlotStatus.streaming
        ):
            return None

        slot = language.value
        token = self.slots.start(slot)
        self.translations[language] = ""
        self.translation_status[language] = SlotStatus.streaming

        def on_progress(snapshot: str) -> None:
            if self.slots.is_active(slot, token):
                self.translations[language] = snapshot

        def on_done(final: str) -> None:
            if not self.slots.is_active(slot, token):
                return
            if final:
                self.translations[language] = final
            self.translation_status[language] = SlotStatus.ready

        try:
            return await consume_sse(
                self.client,
                "/translation/stream",
                {"summary": self.summary, "language": language.value},
                on_progress=on_progress,
                on_done=on_done,
                token=token,
            )
        except GenerationError as e:
            if self.slots.is_active(slot, token):
                self.translations.pop(language, None)
                self.translation_status[language] = SlotStatus.idle
                self.last_error = e.message
            raise
        finally:
            self.slots.finish(slot, token)

    def close(self) -> None:
        """Cancel every stream (the user went back to upload)."""
        self.slots.cancel_all()
        if self.summary_status is SlotStatus.streaming:
            self.summary_status = SlotStatus.idle
        for language, status in list(self.translation_status.items()):
            if status is SlotStatus.streaming:
                self.translations.pop(language, None)
                self.translation_status[language] = SlotStatus.idle

    async def _persist_summary(self, summary: str) -> None:
        if self.history_saved or not self.access_token or not self.document.name:
            return
        self.history_saved = True

        try:
            self.history_record = await save_briefing(
                self.client, self.access_token, self.document.name, summary
            )
        except LegalEaseError as e:
            logger.warning(f"Failed to persist briefing history: {e.message}")
            self.history_error = e.message


class QASession:
    """Append-only Q&A conversation about one document (not persisted)."""

    def __init__(self, client: httpx.AsyncClient, document_text: str) -> None:
        self.client = client
        self.document_text = document_text
        self.messages: list[Message] = []

    def previous_answer(self) -> str | None:
        """Content of the latest assistant message, if any."""
        for message in reversed(self.messages):
            if message.role == "assistant":
                return message.content
        return None

    async def ask(self, question: str) -> Message:
        """Ask a question; the answer comes back in the question's language.

        On failure the user's message is removed again and the error re-raised.

        Raises:
            InvalidInputError: Blank question or undetectable language
            GenerationError: If the model call fails
        """
        if not question.strip():
            raise InvalidInputError("question is required.")

        previous_answer = self.previous_answer()
        user_message = Message(role="user", content=question)
        self.messages.append(user_message)

        try:
            result = await answer_question(
                self.client, self.document_text, question, previous_answer
            )
        except (LegalEaseError, httpx.HTTPError):
            self.messages.remove(user_message)
            raise

        answer = Message(role="assistant", content=result["answer"])
        self.messages.append(answer)
        return answer
