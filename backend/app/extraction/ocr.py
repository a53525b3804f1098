"""Process-wide OCR engine backed by Tesseract.

The engine is initialised lazily on first use and reused across calls.
Concurrent first calls share a single in-flight initialisation future.
Switching language goes through ``reinitialize``; ``terminate`` is wired into
application shutdown.

Paths are configurable via settings:
- TESSERACT_CMD        (path to the tesseract binary)
- TESSERACT_LANG_PATH  (directory containing traineddata files)
"""

import asyncio
import logging
from dataclasses import dataclass

import pytesseract
from PIL import Image

from backend.app.config import get_settings

logger = logging.getLogger(__name__)


class OcrError(Exception):
    """Tesseract is unavailable or failed to recognize the image."""

    pass


@dataclass(frozen=True)
class TesseractWorker:
    """A configured Tesseract binding for one language."""

    lang: str
    version: str
    config: str = ""


class OcrEngine:
    """Lazily initialised, re-configurable Tesseract worker."""

    def __init__(
        self,
        *,
        tesseract_cmd: str | None = None,
        lang_path: str | None = None,
        default_lang: str = "eng",
    ) -> None:
        self._tesseract_cmd = tesseract_cmd
        self._lang_path = lang_path
        self._default_lang = default_lang
        self._init_future: asyncio.Future[TesseractWorker] | None = None

    @property
    def initialized(self) -> bool:
        future = self._init_future
        if future is None or not future.done() or future.cancelled():
            return False
        return future.exception() is None

    async def get_worker(self, lang: str | None = None) -> TesseractWorker:
        """Return the worker, initialising it on first use.

        Raises:
            OcrError: If Tesseract or the language data is unavailable
        """
        lang = lang or self._default_lang

        if self._init_future is None:
            self._init_future = asyncio.ensure_future(self._initialize(lang))
        future = self._init_future

        try:
            worker = await asyncio.shield(future)
        except OcrError:
            # Allow a later call to retry initialisation
            if self._init_future is future:
                self._init_future = None
            raise

        if worker.lang != lang:
            worker = await self.reinitialize(lang)
        return worker

    async def reinitialize(self, lang: str) -> TesseractWorker:
        """Reconfigure the worker for another language."""
        logger.info(f"Reinitializing OCR worker for language {lang}")
        future = asyncio.ensure_future(self._initialize(lang))
        self._init_future = future
        try:
            return await asyncio.shield(future)
        except OcrError:
            if self._init_future is future:
                self._init_future = None
            raise

    async def recognize(self, image: Image.Image, lang: str | None = None) -> str:
        """Run OCR on an image and return the recognized text."""
        worker = await self.get_worker(lang)
        try:
            text: str = await asyncio.to_thread(
                pytesseract.image_to_string, image, lang=worker.lang, config=worker.config
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            raise OcrError(f"Tesseract failed to recognize the image: {e}") from e
        return text

    async def terminate(self) -> None:
        """Release the worker; the next call initialises a fresh one."""
        future = self._init_future
        self._init_future = None
        if future is not None and not future.done():
            future.cancel()
        logger.info("OCR worker terminated")

    async def _initialize(self, lang: str) -> TesseractWorker:
        return await asyncio.to_thread(self._initialize_sync, lang)

    def _initialize_sync(self, lang: str) -> TesseractWorker:
        if self._tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self._tesseract_cmd

        config = f'--tessdata-dir "{self._lang_path}"' if self._lang_path else ""

        try:
            version = str(pytesseract.get_tesseract_version())
            available = set(pytesseract.get_languages(config=config))
        except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError, OSError) as e:
            raise OcrError(f"Tesseract is not available: {e}") from e

        missing = [code for code in lang.split("+") if code not in available]
        if missing:
            raise OcrError(f"Tesseract language data not installed: {', '.join(missing)}")

        logger.info(f"OCR worker initialized (tesseract {version}, lang={lang})")
        return TesseractWorker(lang=lang, version=version, config=config)


# Process-wide engine
_engine: OcrEngine | None = None


def get_ocr_engine() -> OcrEngine:
    """Get the process-wide OCR engine, creating it from settings."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = OcrEngine(
            tesseract_cmd=settings.tesseract_cmd,
            lang_path=settings.tesseract_lang_path,
            default_lang=settings.ocr_default_lang,
        )
    return _engine


async def terminate_ocr_engine() -> None:
    """Shutdown hook: terminate and forget the process-wide engine."""
    global _engine
    if _engine is not None:
        await _engine.terminate()
        _engine = None
