"""SSE relay: turns a generation stream into progress/done/error frames.

State machine per request:

    idle -> streaming -> completed | errored | aborted

Once the response has started, failures are reported in-band as an error
frame; the HTTP status stays 200. A client disconnect cancels the relay and
the underlying remote call is closed without emitting anything further.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import AsyncGenerator
from enum import Enum
from typing import Any

from fastapi.responses import StreamingResponse

from backend.app.errors import LegalEaseError
from backend.app.llm.client import GenerationStream
from backend.app.models.events import DoneEvent, ErrorEvent, ProgressEvent, format_sse
from backend.app.utils.logging import StructuredStreamLogger
from backend.app.utils.metrics import PrometheusStreamMetrics

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


class RelayState(str, Enum):
    """Lifecycle of one relayed stream."""

    idle = "idle"
    streaming = "streaming"
    completed = "completed"
    errored = "errored"
    aborted = "aborted"


class SnapshotRelay:
    """Relay snapshots of one generation stream as SSE frames.

    Each snapshot is forwarded as a full replacement, never a diff. Snapshots
    whose text field is missing or empty are skipped. The final value is the
    latest forwarded snapshot, falling back to the stream's resolved output,
    then to the empty string.
    """

    def __init__(
        self,
        stream: GenerationStream[Any],
        *,
        slot: str,
        field: str,
        payload_key: str,
        default_error: str,
    ) -> None:
        """Initialize relay.

        Args:
            stream: Generation stream to relay (consumed once)
            slot: Slot label for logs and metrics (e.g. "summary", "translation:hindi")
            field: Attribute of each snapshot holding the text
            payload_key: Wire key the text travels under
            default_error: Message used when a failure carries none
        """
        self.stream = stream
        self.slot = slot
        self.field = field
        self.payload_key = payload_key
        self.default_error = default_error
        self.state = RelayState.idle
        self.stream_id = uuid.uuid4().hex
        self.snapshots = 0
        self._metrics = PrometheusStreamMetrics()
        self._log = StructuredStreamLogger()

    def _text(self, output: Any) -> str | None:
        value = getattr(output, self.field, None) if output is not None else None
        return value if isinstance(value, str) and value else None

    def _error_message(self, error: Exception) -> str:
        if isinstance(error, LegalEaseError):
            return error.message or self.default_error
        return str(error) or self.default_error

    async def events(self) -> AsyncGenerator[str, None]:
        """Yield SSE frames until a terminal state is reached."""
        self.state = RelayState.streaming
        started = time.perf_counter()
        error_reason: str | None = None
        latest: str | None = None
        self._log.log_started(self.slot, self.stream_id)

        try:
            async for output in self.stream:
                text = self._text(output)
                if text is None:
                    continue
                latest = text
                self.snapshots += 1
                if self.snapshots == 1:
                    self._metrics.record_first_snapshot(
                        self.slot, (time.perf_counter() - started) * 1000
                    )
                yield format_sse(ProgressEvent(snapshot=text), self.payload_key)

            final = latest
            if final is None:
                final = self._text(await self.stream.response()) or ""
            self.state = RelayState.completed
            yield format_sse(DoneEvent(final=final), self.payload_key)
        except (asyncio.CancelledError, GeneratorExit):
            # Client went away: close quietly
            self.state = RelayState.aborted
            raise
        except Exception as e:
            self.state = RelayState.errored
            error_reason = self._error_message(e)
            logger.warning(f"Stream {self.stream_id} failed: {type(e).__name__}: {e}")
            yield format_sse(ErrorEvent(message=error_reason), self.payload_key)
        finally:
            await self.stream.aclose()
            duration_ms = (time.perf_counter() - started) * 1000
            self._metrics.record_outcome(self.slot, self.state.value, duration_ms)
            self._log.log_outcome(
                self.slot,
                self.stream_id,
                self.state.value,
                self.snapshots,
                duration_ms,
                error_reason=error_reason,
            )


def sse_response(relay: SnapshotRelay) -> StreamingResponse:
    """Wrap a relay in a streaming response with SSE headers."""
    return StreamingResponse(
        relay.events(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
