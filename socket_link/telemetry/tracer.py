"""
OpenTelemetry Tracing

Spans wrap handler dispatch on the server and every call on the client. Until
setup_tracer() installs a TracerProvider the API's no-op tracer is used.
"""

import logging
from typing import Dict, Any, Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

logger = logging.getLogger(__name__)

def setup_tracer(service_name: str, otlp_endpoint: str = "localhost:4317"):
    """Configure OpenTelemetry tracer

    Args:
        service_name: Service name
        otlp_endpoint: OTLP receiver address

    Returns:
        Tracer: Tracer for the service
    """
    provider = TracerProvider(
        sampler=ALWAYS_ON,
        resource=Resource.create({"service.name": service_name}),
    )
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    trace.set_tracer_provider(provider)

    tracer = trace.get_tracer(service_name)

    logger.info(f"OpenTelemetry trace configured, service name: {service_name}, OTLP endpoint: {otlp_endpoint}")

    return tracer

def create_span(name: str,
                attributes: Dict[str, Any] = None,
                kind: Optional[trace.SpanKind] = None):
    """Create new span

    Args:
        name: Span name
        attributes: Span attributes
        kind: Span kind, INTERNAL by default

    Returns:
        ContextManager: Context manager yielding the active span
    """
    tracer = trace.get_tracer(__name__)
    return tracer.start_as_current_span(
        name,
        attributes=attributes or {},
        kind=kind or trace.SpanKind.INTERNAL,
    )
