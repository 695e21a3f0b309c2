"""
OpenTelemetry tracing setup.
"""

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Tracer

from sqsdo import __version__
from sqsdo.config import Settings, get_settings

# Global tracer instance
_tracer: Tracer | None = None


def setup_tracing(settings: Settings | None = None) -> Tracer:
    """
    Set up OpenTelemetry tracing.

    Spans are only exported when an OTLP endpoint is configured; otherwise
    the provider records nothing.

    Args:
        settings: The consumer settings.

    Returns:
        Tracer: The tracer instance.
    """
    global _tracer

    settings = settings or get_settings()

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": __version__,
        }
    )

    provider = TracerProvider(resource=resource)

    if settings.otel_exporter_otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(settings.otel_service_name)

    return _tracer


def shutdown_tracing() -> None:
    """Flush pending spans on exit."""
    provider = trace.get_tracer_provider()
    if isinstance(provider, TracerProvider):
        provider.shutdown()


def get_tracer() -> Tracer:
    """
    Get the tracer instance.

    Falls back to the global (no-op until configured) provider when
    :func:`setup_tracing` has not been called.
    """
    if _tracer is None:
        return trace.get_tracer("sqsdo")
    return _tracer
