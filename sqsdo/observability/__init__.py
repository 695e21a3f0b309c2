"""
Observability module.
Contains logging, metrics, and tracing setup.
"""

from sqsdo.observability.logging import setup_logging
from sqsdo.observability.metrics import (
    MetricsCollector,
    get_metrics,
    setup_metrics,
)
from sqsdo.observability.tracing import get_tracer, setup_tracing, shutdown_tracing

__all__ = [
    "setup_logging",
    "setup_metrics",
    "get_metrics",
    "MetricsCollector",
    "setup_tracing",
    "shutdown_tracing",
    "get_tracer",
]
