"""Generation client with OpenAI integration.

Security: Reads API key from settings only, never hardcoded.
Provides a deterministic fallback when no key is present for testing.

Two calling modes are supported:
- ``generate``: single-shot, returns the prompt's declared output model.
- ``stream``: a lazy, single-use sequence of full snapshots (never diffs)
  that resolves to a final output.
"""

import asyncio
import json
import logging
import re
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable
from typing import Any, Generic, Protocol, TypeVar

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from backend.app.config import get_settings
from backend.app.errors import GenerationError
from backend.app.llm.prompts import PromptTemplate
from backend.app.models.generation import (
    AnswerOutput,
    LanguageDetection,
    SummaryOutput,
    TranslationOutput,
)

logger = logging.getLogger(__name__)

OutputT = TypeVar("OutputT", bound=BaseModel)


class GenerationStream(Generic[OutputT]):
    """Incremental generation result.

    Iterating yields full snapshots of the output so far; consumers must treat
    each snapshot as a replacement, not an append. The sequence can only be
    consumed once. ``response()`` resolves the final output after iteration.
    """

    def __init__(
        self,
        source: AsyncGenerator[OutputT, None],
        resolve: Callable[[], Awaitable[OutputT | None]] | None = None,
    ) -> None:
        self._source = source
        self._resolve = resolve
        self._consumed = False
        self._iterator: AsyncGenerator[OutputT, None] | None = None
        self._last: OutputT | None = None

    def __aiter__(self) -> AsyncIterator[OutputT]:
        if self._consumed:
            raise GenerationError("Generation stream can only be consumed once.")
        self._consumed = True
        self._iterator = self._iterate()
        return self._iterator

    async def _iterate(self) -> AsyncGenerator[OutputT, None]:
        async for snapshot in self._source:
            self._last = snapshot
            yield snapshot

    async def response(self) -> OutputT | None:
        """Resolve the final output, draining the stream if nobody iterated it."""
        if not self._consumed:
            async for _ in self:
                pass
        if self._resolve is not None:
            return await self._resolve()
        return self._last

    async def aclose(self) -> None:
        """Stop the underlying remote call. Already delivered snapshots stay valid."""
        if self._iterator is not None:
            await self._iterator.aclose()
        await self._source.aclose()


class GenerationClient(Protocol):
    """Protocol for generation client implementations."""

    async def generate(self, prompt: PromptTemplate, **params: Any) -> BaseModel:
        """Single-shot generation parsed into ``prompt.output_model``.

        Raises:
            GenerationError: If the remote call fails or output is unparseable
        """
        ...

    def stream(self, prompt: PromptTemplate, **params: Any) -> GenerationStream[Any]:
        """Streaming generation of ``prompt.text_field`` snapshots."""
        ...

    async def transcribe(self, images: list[str], instruction: str) -> str:
        """Best-effort transcription of images given as data URIs."""
        ...


def _snapshot(prompt: PromptTemplate, text: str) -> BaseModel:
    return prompt.output_model.model_validate({prompt.text_field: text})


_DEVANAGARI = re.compile(r"[\u0900-\u097F]")
_TELUGU = re.compile(r"[\u0C00-\u0C7F]")
_LATIN = re.compile(r"[A-Za-z]")


def detect_script_language(text: str) -> str:
    """Guess English/Hindi/Telugu from the dominant script of ``text``."""
    counts = {
        "Hindi": len(_DEVANAGARI.findall(text)),
        "Telugu": len(_TELUGU.findall(text)),
        "English": len(_LATIN.findall(text)),
    }
    language, count = max(counts.items(), key=lambda item: item[1])
    return language if count > 0 else "Unknown"


class DeterministicStubClient:
    """Deterministic stub client for testing (no API key required).

    Translations pass the text through unchanged, so markdown structure is
    preserved trivially.
    """

    def __init__(self, words_per_snapshot: int = 6) -> None:
        self.words_per_snapshot = words_per_snapshot

    def _render(self, prompt: PromptTemplate, params: dict[str, Any]) -> BaseModel:
        model = prompt.output_model

        if model is SummaryOutput:
            return SummaryOutput(summary=self._summary(params.get("document_text") or ""))

        if model is TranslationOutput:
            source = params.get("summary") or params.get("text") or ""
            return TranslationOutput(translated_text=source)

        if model is AnswerOutput:
            question = (params.get("question") or "").strip()
            language = params.get("target_language") or "English"
            word_count = len((params.get("document_text") or "").split())
            return AnswerOutput(
                answer=(
                    f"**{question}**\n\n"
                    f"- The document contains {word_count} words.\n"
                    f"- Answer language: {language}.\n\n"
                    f"*This is a stub answer generated without an AI model.*"
                )
            )

        if model is LanguageDetection:
            return LanguageDetection.model_validate(
                {"language": detect_script_language(params.get("text") or "")}
            )

        raise GenerationError(f"Stub client has no output for prompt '{prompt.name}'")

    @staticmethod
    def _summary(document_text: str) -> str:
        words = document_text.split()
        overview = " ".join(words[:40])
        if len(words) > 40:
            overview += " ..."
        return (
            "# Document Summary\n\n"
            "**Overview**\n"
            f"- {overview}\n\n"
            "**Length**\n"
            f"- {len(words)} words\n\n"
            "*This is a stub summary generated without an AI model.*"
        )

    async def generate(self, prompt: PromptTemplate, **params: Any) -> BaseModel:
        """Generate deterministic stub output."""
        return self._render(prompt, params)

    def stream(self, prompt: PromptTemplate, **params: Any) -> GenerationStream[Any]:
        """Stream the stub output in growing word-group snapshots."""
        return GenerationStream(self._stream_snapshots(prompt, params))

    async def _stream_snapshots(
        self, prompt: PromptTemplate, params: dict[str, Any]
    ) -> AsyncGenerator[BaseModel, None]:
        final = getattr(self._render(prompt, params), prompt.text_field)
        # Split on spaces only so newlines and markdown markers survive every snapshot
        parts = final.split(" ")
        for end in range(self.words_per_snapshot, len(parts), self.words_per_snapshot):
            yield _snapshot(prompt, " ".join(parts[:end]))
            await asyncio.sleep(0)
        yield _snapshot(prompt, final)

    async def transcribe(self, images: list[str], instruction: str) -> str:
        """The stub has no vision capability."""
        return ""


class OpenAIClient:
    """OpenAI-backed generation client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        vision_model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (read from settings)
            model: Model used for text generation
            vision_model: Model used for image transcription
            temperature: Sampling temperature
            max_tokens: Output token cap per call
        """
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model
        self.vision_model = vision_model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate(self, prompt: PromptTemplate, **params: Any) -> BaseModel:
        """Generate structured output using JSON mode."""
        messages = prompt.messages(**params)
        schema = json.dumps(prompt.output_model.model_json_schema())
        messages[0]["content"] += (
            f"\n\nRespond only with a JSON object that matches this JSON schema:\n{schema}"
        )

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                response_format={"type": "json_object"},
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI call failed for prompt {prompt.name}: {e}")
            raise GenerationError(f"Generation request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise GenerationError("Generation returned no output.")

        try:
            return prompt.output_model.model_validate_json(content)
        except ValidationError as e:
            logger.warning(f"Unparseable output for prompt {prompt.name}: {content[:200]!r}")
            raise GenerationError("Generation returned no parseable output.") from e

    def stream(self, prompt: PromptTemplate, **params: Any) -> GenerationStream[Any]:
        """Stream ``prompt.text_field`` as accumulated snapshots."""
        return GenerationStream(self._stream_snapshots(prompt, params))

    async def _stream_snapshots(
        self, prompt: PromptTemplate, params: dict[str, Any]
    ) -> AsyncGenerator[BaseModel, None]:
        try:
            stream = await self.client.chat.completions.create(
                model=self.model,
                messages=prompt.messages(**params),  # type: ignore[arg-type]
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                stream=True,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI stream failed to start for prompt {prompt.name}: {e}")
            raise GenerationError(f"Generation request failed: {e}") from e

        text = ""
        try:
            async for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if not delta:
                    continue
                text += delta
                yield _snapshot(prompt, text)
        except OpenAIError as e:
            logger.error(f"OpenAI stream failed for prompt {prompt.name}: {e}")
            raise GenerationError(f"Generation stream failed: {e}") from e
        finally:
            await stream.close()

    async def transcribe(self, images: list[str], instruction: str) -> str:
        """Transcribe text from images with the vision model."""
        content: list[dict[str, Any]] = [{"type": "text", "text": instruction}]
        content.extend({"type": "image_url", "image_url": {"url": uri}} for uri in images)

        try:
            response = await self.client.chat.completions.create(
                model=self.vision_model,
                messages=[{"role": "user", "content": content}],  # type: ignore[list-item]
                temperature=0,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI vision transcription failed: {e}")
            raise GenerationError(f"Transcription request failed: {e}") from e

        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()


async def get_llm_client() -> GenerationClient:
    """Factory function to get appropriate generation client based on config.

    Returns:
        OpenAIClient if API key is configured, DeterministicStubClient otherwise
    """
    settings = get_settings()
    api_key = settings.openai_api_key

    if api_key and api_key.get_secret_value():
        logger.info("Using OpenAI client for generation")
        return OpenAIClient(
            api_key=api_key.get_secret_value(),
            model=settings.openai_model,
            vision_model=settings.openai_vision_model,
            temperature=settings.generation_temperature,
            max_tokens=settings.generation_max_tokens,
        )
    else:
        logger.warning("No OpenAI API key configured, using deterministic stub client")
        return DeterministicStubClient()
