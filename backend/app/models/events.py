"""Stream event models - what the SSE relay emits and the consumer parses.

On the wire the snapshot/final value travels under a slot-specific key
(``summary`` for the summary stream, ``translation`` for translations):

    data: {"type": "progress", "summary": "..."}\n\n
    data: {"type": "done", "summary": "..."}\n\n
    data: {"type": "error", "message": "..."}\n\n
"""

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

# Keys a progress/done payload may be carried under.
PAYLOAD_KEYS = ("summary", "translation")


class ProgressEvent(BaseModel):
    """A full replacement snapshot of the generation so far."""

    type: Literal["progress"] = "progress"
    snapshot: str


class DoneEvent(BaseModel):
    """Terminal event carrying the final payload."""

    type: Literal["done"] = "done"
    final: str = ""


class ErrorEvent(BaseModel):
    """Terminal event for failures after the stream started."""

    type: Literal["error"] = "error"
    message: str


StreamEvent = Annotated[ProgressEvent | DoneEvent | ErrorEvent, Field(discriminator="type")]


def to_wire(event: ProgressEvent | DoneEvent | ErrorEvent, payload_key: str) -> dict[str, Any]:
    """Convert an event into its wire JSON object."""
    if isinstance(event, ProgressEvent):
        return {"type": event.type, payload_key: event.snapshot}
    if isinstance(event, DoneEvent):
        return {"type": event.type, payload_key: event.final}
    return {"type": event.type, "message": event.message}


def format_sse(event: ProgressEvent | DoneEvent | ErrorEvent, payload_key: str) -> str:
    """Format an event as a single SSE frame."""
    return f"data: {json.dumps(to_wire(event, payload_key), ensure_ascii=False)}\n\n"


def from_wire(data: dict[str, Any]) -> ProgressEvent | DoneEvent | ErrorEvent | None:
    """Interpret a decoded wire object.

    Returns None for objects that are not recognizable events (unknown type,
    or a progress event without a string payload).
    """
    event_type = data.get("type")

    if event_type == "progress":
        for key in PAYLOAD_KEYS:
            value = data.get(key)
            if isinstance(value, str):
                return ProgressEvent(snapshot=value)
        return None

    if event_type == "done":
        for key in PAYLOAD_KEYS:
            value = data.get(key)
            if isinstance(value, str):
                return DoneEvent(final=value)
        return DoneEvent(final="")

    if event_type == "error":
        message = data.get("message")
        if not isinstance(message, str) or not message:
            message = "An error occurred during streaming."
        return ErrorEvent(message=message)

    return None
