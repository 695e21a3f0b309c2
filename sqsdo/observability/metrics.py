"""
Prometheus metrics collection.
"""

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from sqsdo.constants import (
    METRIC_DELETES,
    METRIC_HANDLER_DURATION,
    METRIC_HANDLER_RESULTS,
    METRIC_IN_FLIGHT,
    METRIC_MESSAGES_RECEIVED,
    METRIC_POLLS,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the consumer.

    Collects metrics for:
    - Polls and received messages
    - Handler outcomes and duration
    - Deletions
    - Messages in flight
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.polls = Counter(
            METRIC_POLLS,
            "Total number of receive calls issued",
            registry=self._registry,
        )

        self.messages_received = Counter(
            METRIC_MESSAGES_RECEIVED,
            "Total number of messages received",
            registry=self._registry,
        )

        self.handler_results = Counter(
            METRIC_HANDLER_RESULTS,
            "Total number of handler invocations by outcome",
            ["outcome"],
            registry=self._registry,
        )

        self.handler_duration = Histogram(
            METRIC_HANDLER_DURATION,
            "Handler process duration in seconds",
            ["outcome"],
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
            registry=self._registry,
        )

        self.deletes = Counter(
            METRIC_DELETES,
            "Total number of delete calls by status",
            ["status"],
            registry=self._registry,
        )

        self.in_flight = Gauge(
            METRIC_IN_FLIGHT,
            "Number of messages fetched but not yet resolved",
            registry=self._registry,
        )

    def record_poll(self, received: int) -> None:
        """Record a receive call and how many messages it returned."""
        self.polls.inc()
        if received:
            self.messages_received.inc(received)

    def record_handler_result(self, outcome: str, duration_seconds: float) -> None:
        """Record a finished handler invocation."""
        self.handler_results.labels(outcome=outcome).inc()
        self.handler_duration.labels(outcome=outcome).observe(duration_seconds)

    def record_delete(self, success: bool) -> None:
        """Record a delete call."""
        self.deletes.labels(status="ok" if success else "error").inc()

    def set_in_flight(self, count: int) -> None:
        """Update the in-flight gauge."""
        self.in_flight.set(count)


def setup_metrics(port: int | None = None) -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Args:
        port: If given, serve the default registry over HTTP on this port.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    if port is not None:
        start_http_server(port)
    return _metrics


def get_metrics() -> MetricsCollector:
    """
    Get the metrics collector instance.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    if _metrics is None:
        return setup_metrics()
    return _metrics
