"""
OpenTelemetry Configuration

Sets up distributed tracing and structured logging for the relief grid
coordination API.
"""

import os
import json
import logging
from datetime import datetime, timezone
from typing import Optional
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

SERVICE_NAME = 'reliefgrid-api'

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'asctime'}

_configured_provider = False


def setup_observability(environment: Optional[str] = None, otel_enabled: Optional[bool] = None):
    """Initialize OpenTelemetry instrumentation based on environment configuration."""
    global _configured_provider

    environment = environment or os.getenv('ENVIRONMENT', 'development')
    if otel_enabled is None:
        otel_enabled = os.getenv('OTEL_ENABLED', 'true').lower() == 'true'
    service_version = os.getenv('SERVICE_VERSION', '1.0.0')

    if not otel_enabled or environment == 'test' or _configured_provider:
        # Spans stay no-ops without a tracer provider
        return

    # Environment-specific sampling
    if environment == 'production':
        sampler = TraceIdRatioBased(0.1)  # 10% sampling in production
    elif environment == 'staging':
        sampler = TraceIdRatioBased(0.5)  # 50% sampling in staging
    else:
        sampler = TraceIdRatioBased(1.0)  # 100% sampling in development

    resource = Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": service_version,
        "deployment.environment": environment
    })

    tracer_provider = TracerProvider(
        sampler=sampler,
        resource=resource
    )

    otlp_endpoint = os.getenv('OTEL_EXPORTER_OTLP_ENDPOINT')
    if otlp_endpoint:
        headers = None
        if os.getenv('OTEL_API_KEY'):
            headers = {"Authorization": f"Bearer {os.getenv('OTEL_API_KEY')}"}
        tracer_provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, headers=headers),
                               max_export_batch_size=512)
        )
    elif environment == 'development':
        tracer_provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(tracer_provider)
    _configured_provider = True


class StructuredFormatter(logging.Formatter):
    """JSON lines with ``extra`` fields and the active trace id."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        span_context = trace.get_current_span().get_span_context()
        if span_context.is_valid:
            log_entry["trace_id"] = format(span_context.trace_id, "032x")
            log_entry["span_id"] = format(span_context.span_id, "016x")

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith('_'):
                log_entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_structured_logging(environment: str, log_level: Optional[str] = None):
    """Configure structured JSON logging with trace correlation."""
    default_level = {
        'production': logging.WARNING,
        'staging': logging.INFO,
        'development': logging.DEBUG,
        'test': logging.WARNING
    }.get(environment, logging.INFO)
    level = getattr(logging, log_level.upper(), default_level) if log_level else default_level

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger()
    # Replace handlers so repeated app creation does not duplicate output
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Reduce noise from client libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('pymongo').setLevel(logging.WARNING)
    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    if environment == 'development':
        logging.getLogger('reliefgrid').setLevel(logging.DEBUG)
