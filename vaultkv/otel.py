import logging
import os

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.instrumentation.requests import RequestsInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, SpanExporter
from opentelemetry.trace import format_span_id, format_trace_id


def _otlp_endpoint() -> str:
    return os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://otel-collector:4318")


def _log_hook(span, record):
    context = span.get_span_context() if span else None
    if context and context.is_valid:
        record.trace_id = format_trace_id(context.trace_id)
        record.span_id = format_span_id(context.span_id)


def configure_otel(service_name: str | None = None, span_exporter: SpanExporter | None = None) -> TracerProvider:
    """Export vaultkv spans over OTLP and instrument both HTTP stacks.

    hvac talks through requests and the metadata reader through httpx, so
    both get instrumented. Meant to be called once at application start.
    """
    service_name = service_name or os.getenv("OTEL_SERVICE_NAME", "vaultkv")
    resource = Resource.create({"service.name": service_name})

    exporter = span_exporter or OTLPSpanExporter(endpoint=f"{_otlp_endpoint()}/v1/traces")
    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(tracer_provider)

    LoggingInstrumentor().instrument(set_logging_format=False, log_hook=_log_hook)
    RequestsInstrumentor().instrument(tracer_provider=tracer_provider)
    HTTPXClientInstrumentor().instrument(tracer_provider=tracer_provider)

    logging.getLogger(__name__).info("otel.configured", extra={"service_name": service_name})
    return tracer_provider
