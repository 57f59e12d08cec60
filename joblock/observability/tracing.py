"""
OpenTelemetry tracing setup.
"""

from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Tracer

from joblock import __version__
from joblock.config import get_settings

# Global tracer instance
_tracer: Tracer | None = None


def setup_tracing(
    enable_console_export: bool = False,
    enable_otlp_export: bool = True,
) -> Tracer:
    """
    Set up OpenTelemetry tracing.

    Args:
        enable_console_export: If True, also export spans to console.
        enable_otlp_export: If True, export spans to the OTLP endpoint.

    Returns:
        Tracer: The tracer instance.
    """
    global _tracer

    settings = get_settings()

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": __version__,
        }
    )
    provider = TracerProvider(resource=resource)

    if enable_otlp_export:
        provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(
                    endpoint=settings.otel_exporter_otlp_endpoint,
                    insecure=True,
                )
            )
        )

    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(settings.otel_service_name)

    return _tracer


def get_tracer() -> Tracer:
    """
    Get the tracer instance.

    Falls back to the globally registered provider (a no-op tracer unless
    ``setup_tracing`` ran), so library use never starts an exporter.
    """
    if _tracer is None:
        return trace.get_tracer("joblock")
    return _tracer


def create_span(name: str, **attributes: Any) -> Any:
    """
    Create a new span with the given name and attributes.

    Args:
        name: Span name.
        **attributes: Span attributes. None values are dropped.

    Returns:
        A context manager for the span.
    """
    return get_tracer().start_as_current_span(
        name,
        attributes={key: str(value) for key, value in attributes.items() if value is not None},
    )
