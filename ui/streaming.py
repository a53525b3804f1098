"""Stream consumer - SSE bytes in, progress/done callbacks out.

Wire format (one event per blank-line separated block):

    data: {"type": "progress", "summary": "..."}\n\n
    data: {"type": "done", "summary": "..."}\n\n
    data: {"type": "error", "message": "..."}\n\n

Progress snapshots replace what was shown before; they are never appended.
Cancellation is cooperative through a CancelToken: cancelling unblocks the
pending network read, closes the connection and suppresses every later
callback. An aborted stream is not an error.
"""

import asyncio
import codecs
import json
import logging
from collections.abc import Callable
from contextlib import suppress
from enum import Enum
from typing import Any

import httpx

from backend.app.errors import GenerationError
from backend.app.models.events import DoneEvent, ErrorEvent, ProgressEvent, from_wire

logger = logging.getLogger(__name__)

ParsedEvent = ProgressEvent | DoneEvent | ErrorEvent

PARSE_ERROR = "Failed to parse streaming payload."
DEFAULT_HTTP_ERROR = "Streaming endpoint returned an error."
CONNECT_ERROR = "Could not reach the streaming endpoint."


class SSEParser:
    """Incremental SSE parser.

    Bytes may be split anywhere, including inside a multi-byte character,
    inside ``data:`` or inside the JSON payload; incomplete input is kept
    until the next ``feed``.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[ParsedEvent]:
        """Consume a chunk and return the events it completed.

        Raises:
            GenerationError: If a data line is not valid JSON
        """
        self._buffer += self._decoder.decode(chunk)
        return self._drain()

    def close(self) -> list[ParsedEvent]:
        """Flush the decoder at end of stream; an unterminated trailing block is dropped."""
        self._buffer += self._decoder.decode(b"", final=True)
        events = self._drain()
        self._buffer = ""
        return events

    def _drain(self) -> list[ParsedEvent]:
        events: list[ParsedEvent] = []
        while "\n\n" in self._buffer:
            block, self._buffer = self._buffer.split("\n\n", 1)
            events.extend(self._parse_block(block))
        return events

    @staticmethod
    def _parse_block(block: str) -> list[ParsedEvent]:
        events: list[ParsedEvent] = []
        for line in block.strip().split("\n"):
            # Only data lines carry payload; comments, ids and event names are ignored
            if not line.startswith("data:"):
                continue
            data = line[5:].strip()
            if not data:
                continue

            try:
                payload = json.loads(data)
            except json.JSONDecodeError as e:
                raise GenerationError(PARSE_ERROR) from e
            if not isinstance(payload, dict):
                continue

            event = from_wire(payload)
            if event is not None:
                events.append(event)
        return events


class CancelToken:
    """One-shot cancellation signal for a single stream."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class StreamOutcome(str, Enum):
    """How a consumed stream ended (errors raise instead)."""

    COMPLETED = "completed"
    ABORTED = "aborted"


def error_message(response: httpx.Response, default: str) -> str:
    """The ``message`` of a JSON error body, or ``default``."""
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return default
    if isinstance(data, dict) and isinstance(data.get("message"), str) and data["message"]:
        return str(data["message"])
    return default


async def consume_sse(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    *,
    on_progress: Callable[[str], None],
    on_done: Callable[[str], None],
    token: CancelToken | None = None,
    headers: dict[str, str] | None = None,
) -> StreamOutcome:
    """POST ``payload`` to an SSE endpoint and dispatch its events.

    Args:
        client: HTTP client (its base URL is prepended to ``url``)
        url: Endpoint path
        payload: JSON request body
        on_progress: Called with each full snapshot
        on_done: Called once with the final value; with "" when the transport
            closes or drops mid-body without a terminal event
        token: Cancellation token for this stream
        headers: Extra request headers

    Returns:
        COMPLETED, or ABORTED if the token was cancelled first

    Raises:
        GenerationError: Unreachable endpoint, non-2xx response, in-band error
            event, or malformed payload
    """
    token = token or CancelToken()
    if token.cancelled:
        return StreamOutcome.ABORTED

    reader = asyncio.ensure_future(
        _read_stream(client, url, payload, on_progress, on_done, token, headers)
    )
    waiter = asyncio.ensure_future(token.wait())

    try:
        done, _ = await asyncio.wait({reader, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not reader.done():
            # Unblock the pending read; leaving the stream context closes the connection
            reader.cancel()
            with suppress(asyncio.CancelledError):
                await reader

    if reader in done and not reader.cancelled():
        reader.result()
        return StreamOutcome.ABORTED if token.cancelled else StreamOutcome.COMPLETED

    logger.info(f"Stream to {url} aborted")
    return StreamOutcome.ABORTED


async def _read_stream(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    on_progress: Callable[[str], None],
    on_done: Callable[[str], None],
    token: CancelToken,
    headers: dict[str, str] | None,
) -> None:
    try:
        async with client.stream("POST", url, json=payload, headers=headers) as response:
            if not response.is_success:
                await response.aread()
                raise GenerationError(error_message(response, DEFAULT_HTTP_ERROR))
            await _dispatch_body(response, on_progress, on_done, token)
    except httpx.TransportError as e:
        logger.warning(f"Stream to {url} failed: {e!r}")
        raise GenerationError(CONNECT_ERROR) from e


async def _dispatch_body(
    response: httpx.Response,
    on_progress: Callable[[str], None],
    on_done: Callable[[str], None],
    token: CancelToken,
) -> None:
    parser = SSEParser()
    resolved = False

    def dispatch(events: list[ParsedEvent]) -> None:
        nonlocal resolved
        for event in events:
            if token.cancelled:
                return
            if isinstance(event, ProgressEvent):
                on_progress(event.snapshot)
            elif isinstance(event, DoneEvent):
                resolved = True
                on_done(event.final)
            else:
                raise GenerationError(event.message)

    try:
        async for chunk in response.aiter_bytes():
            if token.cancelled:
                return
            dispatch(parser.feed(chunk))
    except httpx.TransportError as e:
        # Body cut off mid-transfer; handled like a clean close without a done event
        logger.warning(f"Stream body interrupted: {e!r}")

    dispatch(parser.close())

    if not resolved and not token.cancelled:
        # Truncated stream: callers keep their last snapshot
        on_done("")


class StreamSlots:
    """Registry of active streams, at most one per slot.

    Starting a stream in a slot cancels whatever was running there, so a
    late completion of the older stream can never overwrite newer state.
    """

    def __init__(self) -> None:
        self._tokens: dict[str, CancelToken] = {}

    def start(self, slot: str) -> CancelToken:
        """Cancel the slot's current stream and register a new token."""
        self.cancel(slot)
        token = CancelToken()
        self._tokens[slot] = token
        return token

    def is_active(self, slot: str, token: CancelToken) -> bool:
        """Whether ``token`` is still the live stream of ``slot``."""
        return self._tokens.get(slot) is token and not token.cancelled

    def finish(self, slot: str, token: CancelToken) -> None:
        """Forget ``token`` if it is still the slot's stream."""
        if self._tokens.get(slot) is token:
            del self._tokens[slot]

    def cancel(self, slot: str) -> None:
        token = self._tokens.pop(slot, None)
        if token is not None:
            token.cancel()

    def cancel_all(self) -> None:
        for slot in list(self._tokens):
            self.cancel(slot)

    def active_slots(self) -> list[str]:
        return [slot for slot, token in self._tokens.items() if not token.cancelled]
