"""Structured logging for generation streams and extraction."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredStreamLogger:
    """Structured logger for SSE relay streams."""

    def log_started(self, slot: str, stream_id: str) -> None:
        """Log a stream entering the Streaming state."""
        logger.info(
            f"Stream started: {slot}",
            extra={"structured": {"slot": slot, "stream_id": stream_id, "state": "streaming"}},
        )

    def log_outcome(
        self,
        slot: str,
        stream_id: str,
        outcome: str,
        snapshots: int,
        duration_ms: float,
        error_reason: str | None = None,
    ) -> None:
        """Log a stream reaching a terminal state."""
        log_data: dict[str, Any] = {
            "slot": slot,
            "stream_id": stream_id,
            "state": outcome,
            "snapshots": snapshots,
            "duration_ms": round(duration_ms, 2),
        }

        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Stream {outcome}: {slot}"

        if outcome in ("completed", "aborted"):
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})


def log_extraction(
    media_type: str,
    method: str,
    outcome: str,
    latency_ms: float,
    chars: int = 0,
    error_reason: str | None = None,
) -> None:
    """Log one extraction attempt with structured data."""
    log_data: dict[str, Any] = {
        "media_type": media_type,
        "method": method,
        "outcome": outcome,
        "latency_ms": round(latency_ms, 2),
        "chars": chars,
    }

    if error_reason:
        log_data["error_reason"] = error_reason

    log_msg = f"Extraction {outcome}: {media_type} via {method}"

    if outcome == "success":
        logger.info(log_msg, extra={"structured": log_data})
    else:
        logger.warning(log_msg, extra={"structured": log_data})
