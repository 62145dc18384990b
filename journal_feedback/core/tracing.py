"""
OpenTelemetry Distributed Tracing Configuration.

Sets up OpenTelemetry with:
- TracerProvider with the service name
- BatchSpanProcessor for span export
- Console exporter by default, OTLP when OTEL_EXPORTER_OTLP_ENDPOINT is set
- Environment variable control (OTEL_ENABLED=true/false)

Usage:
    from journal_feedback.core.tracing import setup_tracing, get_tracer, instrument_app

    setup_tracing()
    instrument_app(app)

    tracer = get_tracer(__name__)
    with tracer.start_as_current_span("model.invoke") as span:
        span.set_attribute("model", model_name)

Spans never carry journal text or model output, only sizes and identifiers.

Environment Variables:
    OTEL_ENABLED: Set to "true" to enable tracing (default: false)
    OTEL_SERVICE_NAME: Override service name (default: journal-feedback-service)
    OTEL_EXPORTER_OTLP_ENDPOINT: OTLP endpoint for production (optional)
"""

import logging
import os
from typing import Optional

from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Tracer

logger = logging.getLogger("JournalFeedback.Tracing")

DEFAULT_SERVICE_NAME = "journal-feedback-service"

# Global state
_tracer_provider: Optional[TracerProvider] = None
_is_initialized = False


def is_tracing_enabled() -> bool:
    """Return True if OTEL_ENABLED is "true" (case-insensitive)."""
    return os.getenv("OTEL_ENABLED", "false").lower() == "true"


def setup_tracing(service_name: Optional[str] = None) -> Optional[TracerProvider]:
    """
    Initialize OpenTelemetry tracing with TracerProvider and span processor.

    If OTEL_ENABLED is not "true", this function returns None and does nothing.

    Args:
        service_name: Optional override for the service name.
                     Defaults to OTEL_SERVICE_NAME env var or DEFAULT_SERVICE_NAME.

    Returns:
        The configured TracerProvider, or None if tracing is disabled.
    """
    global _tracer_provider, _is_initialized

    if _is_initialized:
        logger.debug("Tracing already initialized, skipping")
        return _tracer_provider

    if not is_tracing_enabled():
        logger.info("OpenTelemetry tracing is disabled (set OTEL_ENABLED=true to enable)")
        _is_initialized = True
        return None

    effective_service_name = (
        service_name
        or os.getenv("OTEL_SERVICE_NAME")
        or DEFAULT_SERVICE_NAME
    )

    resource = Resource.create({SERVICE_NAME: effective_service_name})
    _tracer_provider = TracerProvider(resource=resource)

    otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if otlp_endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        exporter = OTLPSpanExporter(endpoint=otlp_endpoint)
        logger.info(f"Using OTLP exporter with endpoint: {otlp_endpoint}")
    else:
        exporter = ConsoleSpanExporter()
        logger.info("Using Console exporter for trace output")

    _tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(_tracer_provider)

    _is_initialized = True
    logger.info(f"OpenTelemetry tracing initialized for service: {effective_service_name}")

    return _tracer_provider


def get_tracer(name: str) -> Tracer:
    """
    Get a tracer instance for creating custom spans.

    Returns a no-op tracer when tracing is disabled.
    """
    return trace.get_tracer(name)


def instrument_app(app) -> None:
    """
    Instrument a FastAPI application with OpenTelemetry.

    Adds automatic tracing for incoming HTTP requests (method, path,
    status code, timing).
    """
    if not is_tracing_enabled():
        logger.debug("Tracing disabled, skipping FastAPI instrumentation")
        return

    FastAPIInstrumentor.instrument_app(app)
    logger.info("FastAPI instrumentation enabled")


def instrument_httpx() -> None:
    """Trace outbound httpx requests, which covers the model SDK's calls."""
    if not is_tracing_enabled():
        logger.debug("Tracing disabled, skipping httpx instrumentation")
        return

    HTTPXClientInstrumentor().instrument()
    logger.info("httpx instrumentation enabled")


def shutdown_tracing() -> None:
    """Shutdown the tracing provider and flush any remaining spans."""
    global _tracer_provider, _is_initialized

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        logger.info("OpenTelemetry tracing shut down")

    _tracer_provider = None
    _is_initialized = False
