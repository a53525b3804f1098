"""Prometheus metrics for generation streams and text extraction."""

from prometheus_client import Counter, Histogram

# Generation stream metrics
generation_streams_total = Counter(
    "generation_streams_total",
    "Total SSE generation streams by terminal state",
    ["slot", "outcome"],
)

generation_first_snapshot_ms = Histogram(
    "generation_first_snapshot_ms",
    "Time from stream start to first forwarded snapshot in milliseconds",
    ["slot"],
    buckets=[100, 250, 500, 1000, 2000, 4000, 8000, 16000],
)

generation_stream_duration_ms = Histogram(
    "generation_stream_duration_ms",
    "Total SSE generation stream duration in milliseconds",
    ["slot", "outcome"],
    buckets=[500, 1000, 2000, 5000, 10000, 20000, 40000, 80000],
)

# Extraction metrics
extraction_total = Counter(
    "extraction_total",
    "Total document extractions",
    ["media_type", "method", "outcome"],
)

extraction_latency_ms = Histogram(
    "extraction_latency_ms",
    "Document extraction latency in milliseconds",
    ["media_type"],
    buckets=[10, 50, 100, 250, 500, 1000, 2000, 5000, 10000],
)


class PrometheusStreamMetrics:
    """Prometheus-based stream metrics implementation."""

    def record_first_snapshot(self, slot: str, latency_ms: float) -> None:
        """Record time to first forwarded snapshot."""
        generation_first_snapshot_ms.labels(slot=slot).observe(latency_ms)

    def record_outcome(self, slot: str, outcome: str, duration_ms: float) -> None:
        """Record a stream reaching a terminal state."""
        generation_streams_total.labels(slot=slot, outcome=outcome).inc()
        generation_stream_duration_ms.labels(slot=slot, outcome=outcome).observe(duration_ms)


class PrometheusExtractionMetrics:
    """Prometheus-based extraction metrics implementation."""

    def record(self, media_type: str, method: str, outcome: str, latency_ms: float) -> None:
        """Record one extraction attempt."""
        extraction_total.labels(media_type=media_type, method=method, outcome=outcome).inc()
        extraction_latency_ms.labels(media_type=media_type).observe(latency_ms)
