"""Centralized OpenTelemetry tracing configuration.

Tracing is opt-in via the OTEL_ENABLED environment variable or an
``otel`` trace backend. When disabled, tracers hand out no-op spans.
"""

import os

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

SERVICE_NAME = "agentic-rag"

_initialized: bool = False


def setup_telemetry(force: bool = False) -> bool:
    """Initialize the OpenTelemetry TracerProvider once per process.

    Args:
        force: Enable tracing even if OTEL_ENABLED is not "true"

    Returns:
        True if a real tracer provider is installed
    """
    global _initialized
    if _initialized:
        return True

    enabled = force or os.getenv("OTEL_ENABLED", "false").lower() == "true"
    if not enabled:
        return False

    resource = Resource.create({"service.name": SERVICE_NAME})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)

    _initialized = True
    return True


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer for the given module name.

    If telemetry was not set up, this returns a no-op tracer.
    """
    return trace.get_tracer(name)
