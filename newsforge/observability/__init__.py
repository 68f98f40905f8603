"""Observability layer - logging and metrics."""

from newsforge.observability.logging import setup_logging
from newsforge.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
