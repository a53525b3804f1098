"""File decoder - data URI in, plain text out.

Dispatch is closed over MediaType:
- Word documents   -> structural extraction (python-docx)
- Presentations    -> slide XML text runs in slide-number order
- PDF              -> text layer (PyMuPDF), vision fallback on rendered pages
- JPEG/PNG         -> OCR (Tesseract), vision fallback on the image
- anything else    -> UnsupportedTypeError

Only InvalidInputError, UnsupportedTypeError and ExtractionEmptyError escape
``DocumentDecoder.decode``.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import TypeVar

from backend.app.config import get_settings
from backend.app.errors import ExtractionEmptyError, GenerationError, UnsupportedTypeError
from backend.app.extraction.data_uri import DecodedPayload, decode_data_uri, encode_data_uri
from backend.app.extraction.extractors import (
    extract_docx,
    extract_pdf,
    extract_pptx,
    load_image,
    render_pdf_pages,
)
from backend.app.extraction.ocr import OcrEngine, OcrError, get_ocr_engine
from backend.app.llm.client import GenerationClient, get_llm_client
from backend.app.llm.prompts import EXTRACT_TEXT_INSTRUCTION
from backend.app.models.common import MediaType
from backend.app.utils.logging import log_extraction
from backend.app.utils.metrics import PrometheusExtractionMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MEDIA_TYPE_ALIASES = {
    "image/jpg": MediaType.jpeg,
    "image/pjpeg": MediaType.jpeg,
}

_FORMAT_LABELS = {
    MediaType.docx: "Word document",
    MediaType.pptx: "presentation",
    MediaType.pdf: "PDF",
    MediaType.jpeg: "image",
    MediaType.png: "image",
}


def resolve_media_type(mime_type: str) -> MediaType:
    """Map a declared MIME type onto the supported formats.

    Raises:
        UnsupportedTypeError: For any other type
    """
    if mime_type in _MEDIA_TYPE_ALIASES:
        return _MEDIA_TYPE_ALIASES[mime_type]
    try:
        return MediaType(mime_type)
    except ValueError as e:
        raise UnsupportedTypeError(
            f"Unsupported file type '{mime_type}'. "
            "Please upload a PDF, DOCX, PPTX, JPG, or PNG file."
        ) from e


@dataclass(frozen=True)
class ExtractionResult:
    """Extracted text plus how it was obtained."""

    text: str
    media_type: MediaType
    method: str


class DocumentDecoder:
    """Decode data URIs into text."""

    def __init__(
        self,
        *,
        ocr: OcrEngine,
        client: GenerationClient | None = None,
        vision_fallback: bool = True,
        vision_max_pages: int = 5,
        max_bytes: int | None = None,
    ) -> None:
        """Initialize decoder.

        Args:
            ocr: OCR engine for image documents
            client: Generation client used for the vision fallback
            vision_fallback: Whether to ask the vision model when extraction is empty
            vision_max_pages: Maximum PDF pages rendered for the vision fallback
            max_bytes: Upload size cap
        """
        self._ocr = ocr
        self._client = client
        self._vision_fallback = vision_fallback
        self._vision_max_pages = vision_max_pages
        self._max_bytes = max_bytes
        self._metrics = PrometheusExtractionMetrics()

    async def decode(self, data_uri: str) -> ExtractionResult:
        """Extract text from a data URI.

        Raises:
            InvalidInputError: Malformed data URI (no dispatch attempted)
            UnsupportedTypeError: Media type outside the supported set
            ExtractionEmptyError: Nothing usable could be extracted
        """
        payload = decode_data_uri(data_uri, max_bytes=self._max_bytes)
        media_type = resolve_media_type(payload.mime_type)

        started = time.perf_counter()
        try:
            result = await self._dispatch(media_type, payload)
        except ExtractionEmptyError as e:
            latency_ms = (time.perf_counter() - started) * 1000
            self._metrics.record(media_type.name, "none", "empty", latency_ms)
            log_extraction(media_type.name, "none", "empty", latency_ms, error_reason=e.message)
            raise

        latency_ms = (time.perf_counter() - started) * 1000
        self._metrics.record(media_type.name, result.method, "success", latency_ms)
        log_extraction(media_type.name, result.method, "success", latency_ms, chars=len(result.text))
        return result

    async def _dispatch(self, media_type: MediaType, payload: DecodedPayload) -> ExtractionResult:
        if media_type is MediaType.docx:
            text = await self._structural(extract_docx, payload.data, media_type)
            return self._require(text, media_type, "docx")

        if media_type is MediaType.pptx:
            text = await self._structural(extract_pptx, payload.data, media_type)
            return self._require(text, media_type, "pptx")

        if media_type is MediaType.pdf:
            text = await self._structural(extract_pdf, payload.data, media_type)
            if text:
                return ExtractionResult(text=text, media_type=media_type, method="pdf_text")
            # Scanned PDF: no text layer
            render = partial(render_pdf_pages, max_pages=self._vision_max_pages)
            pages = await self._structural(render, payload.data, media_type)
            images = [encode_data_uri(MediaType.png.value, page) for page in pages]
            return await self._vision(images, media_type)

        if media_type.is_image:
            image = await self._structural(load_image, payload.data, media_type)
            try:
                text = (await self._ocr.recognize(image)).strip()
            except OcrError as e:
                logger.warning(f"OCR unavailable, trying vision fallback: {e}")
                text = ""
            if text:
                return ExtractionResult(text=text, media_type=media_type, method="ocr")
            return await self._vision([encode_data_uri(media_type.value, payload.data)], media_type)

        raise UnsupportedTypeError(f"No extractor registered for {media_type.value}")

    async def _structural(
        self, extractor: Callable[[bytes], T], data: bytes, media_type: MediaType
    ) -> T:
        """Run a blocking extractor; unreadable files become ExtractionEmptyError."""
        label = _FORMAT_LABELS[media_type]
        try:
            return await asyncio.to_thread(extractor, data)
        except Exception as e:
            logger.warning(f"Failed to read {label}: {type(e).__name__}: {e}")
            raise ExtractionEmptyError(
                f"Could not read the {label}. The file may be corrupt or truncated."
            ) from e

    async def _vision(self, images: list[str], media_type: MediaType) -> ExtractionResult:
        label = _FORMAT_LABELS[media_type]
        if not self._vision_fallback or self._client is None or not images:
            raise ExtractionEmptyError(f"No text could be extracted from the {label}.")

        try:
            text = (await self._client.transcribe(images, EXTRACT_TEXT_INSTRUCTION)).strip()
        except GenerationError as e:
            raise ExtractionEmptyError(f"Failed to extract text from the {label}: {e.message}") from e

        return self._require(text, media_type, "vision")

    @staticmethod
    def _require(text: str, media_type: MediaType, method: str) -> ExtractionResult:
        if not text.strip():
            raise ExtractionEmptyError(
                f"No text could be extracted from the {_FORMAT_LABELS[media_type]}."
            )
        return ExtractionResult(text=text.strip(), media_type=media_type, method=method)


async def get_document_decoder() -> DocumentDecoder:
    """FastAPI dependency: decoder wired to the process-wide OCR engine."""
    settings = get_settings()
    client = await get_llm_client() if settings.vision_fallback_enabled else None
    return DocumentDecoder(
        ocr=get_ocr_engine(),
        client=client,
        vision_fallback=settings.vision_fallback_enabled,
        vision_max_pages=settings.vision_max_pages,
        max_bytes=settings.max_upload_bytes,
    )
