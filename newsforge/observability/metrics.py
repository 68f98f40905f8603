"""
Prometheus metrics for monitoring fetch runs and AI generation.

Defines and exposes metrics for:
- Source fetch outcomes and latency
- Headlines stored
- Run completion
- AI generation calls per provider

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    start_http_server,
)

from newsforge.config.settings import get_settings
from newsforge.ingestion.schemas import SourceKind

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0)


class MetricsCollector:
    """
    Prometheus metrics collector for NewsForge.

    Usage:
        metrics = MetricsCollector()
        metrics.start_server()

        metrics.record_source_fetch(SourceKind.FEED, success=True, items=12, latency=0.8)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        self.source_fetches = Counter(
            "newsforge_source_fetches_total",
            "Total source fetch attempts by outcome",
            ["kind", "status"],  # status: success, error
        )

        self.source_errors = Counter(
            "newsforge_source_errors_total",
            "Total source fetch errors by error kind",
            ["kind", "error_type"],
        )

        self.source_latency = Histogram(
            "newsforge_source_fetch_latency_seconds",
            "Time to fetch and store one source",
            ["kind"],
            buckets=LATENCY_BUCKETS,
        )

        self.items_stored = Counter(
            "newsforge_items_stored_total",
            "Total headlines stored",
            ["kind"],
        )

        self.runs_completed = Counter(
            "newsforge_runs_completed_total",
            "Total fetch runs completed",
        )

        self.run_duration = Histogram(
            "newsforge_run_duration_seconds",
            "End-to-end fetch run duration",
            buckets=LATENCY_BUCKETS,
        )

        self.ai_generations = Counter(
            "newsforge_ai_generations_total",
            "Total AI generation calls",
            ["provider", "status"],  # status: success, error
        )

        self.ai_latency = Histogram(
            "newsforge_ai_generation_latency_seconds",
            "AI generation latency",
            ["provider"],
            buckets=LATENCY_BUCKETS,
        )

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to expose metrics on (default from settings)
        """
        settings = get_settings()
        port = port or settings.metrics_port

        start_http_server(port, registry=REGISTRY)
        logger.info(f"Prometheus metrics server started on port {port}")

    # Convenience methods

    def record_source_fetch(
        self,
        kind: SourceKind | str,
        success: bool,
        items: int = 0,
        latency: float | None = None,
        error_type: str | None = None,
    ) -> None:
        """
        Record the outcome of one source fetch.

        Args:
            kind: Source kind
            success: Whether the source succeeded
            items: Number of headlines stored
            latency: Optional fetch latency in seconds
            error_type: Error category when the source failed
        """
        kind_str = kind.value if isinstance(kind, SourceKind) else kind
        self.source_fetches.labels(
            kind=kind_str, status="success" if success else "error"
        ).inc()

        if success and items:
            self.items_stored.labels(kind=kind_str).inc(items)
        if not success:
            self.source_errors.labels(
                kind=kind_str, error_type=error_type or "unknown"
            ).inc()
        if latency is not None:
            self.source_latency.labels(kind=kind_str).observe(latency)

    def record_run(self, duration_seconds: float) -> None:
        """Record a completed fetch run."""
        self.runs_completed.inc()
        self.run_duration.observe(duration_seconds)

    def record_generation(
        self,
        provider: str,
        success: bool,
        latency: float | None = None,
    ) -> None:
        """
        Record an AI generation call.

        Args:
            provider: Provider id that served the call
            success: Whether the call returned a response
            latency: Optional latency in seconds
        """
        self.ai_generations.labels(
            provider=provider, status="success" if success else "error"
        ).inc()
        if latency is not None:
            self.ai_latency.labels(provider=provider).observe(latency)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
