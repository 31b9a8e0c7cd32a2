"""OpenTelemetry tracing for ingestion, retrieval and generator calls."""
import functools
from typing import Callable, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.openai import OpenAIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.trace import Status, StatusCode

from study_assistant.utils.logger import logger

TRACER_NAME = "study_assistant"


def _build_exporter(otlp_endpoint: Optional[str]) -> SpanExporter:
    if otlp_endpoint:
        logger.info(f"Tracing spans exported to OTLP endpoint: {otlp_endpoint}")
        return OTLPSpanExporter(endpoint=otlp_endpoint)
    logger.info("Tracing spans exported to console")
    return ConsoleSpanExporter()


def initialize_tracing(
    service_name: str = "study-assistant",
    service_version: str = "1.0.0",
    otlp_endpoint: Optional[str] = None,
    tracing_enabled: bool = True,
) -> Optional[TracerProvider]:
    """
    Install a tracer provider and instrument the OpenAI SDK.

    Ingestion and retrieval spans come from ``traced``; generator requests
    are traced by the OpenAI instrumentation.

    Args:
        service_name: Name of the service for traces
        service_version: Version of the service
        otlp_endpoint: OTLP HTTP endpoint (e.g. http://localhost:4318/v1/traces);
                      spans go to the console when unset
        tracing_enabled: Enable/disable tracing

    Returns:
        TracerProvider instance if tracing is enabled, None otherwise
    """
    if not tracing_enabled:
        logger.info("Tracing is disabled")
        return None

    try:
        tracer_provider = TracerProvider(
            resource=Resource.create({"service.name": service_name, "service.version": service_version})
        )
        tracer_provider.add_span_processor(BatchSpanProcessor(_build_exporter(otlp_endpoint)))
        trace.set_tracer_provider(tracer_provider)

        OpenAIInstrumentor().instrument()

        logger.info("OpenTelemetry tracing initialized successfully")
        return tracer_provider

    except Exception as e:
        logger.error(f"Failed to initialize tracing: {str(e)}", exc_info=True)
        return None


def traced(span_name: str) -> Callable:
    """
    Run the decorated function inside a span.

    Exceptions are recorded on the span and re-raised. Without an installed
    provider the global no-op tracer is used, so decorated code runs
    unchanged when tracing is disabled.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            tracer = trace.get_tracer(TRACER_NAME)
            with tracer.start_as_current_span(span_name, record_exception=False) as span:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    raise

        return wrapper

    return decorator


def shutdown_tracing(tracer_provider: Optional[TracerProvider]) -> None:
    """Flush pending spans and shut the provider down."""
    if tracer_provider:
        try:
            tracer_provider.shutdown()
            logger.info("Tracing shutdown completed")
        except Exception as e:
            logger.warning(f"Error during tracing shutdown: {str(e)}")
