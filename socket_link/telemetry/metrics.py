"""
OpenTelemetry Metrics Collection

Counters and histograms recorded by the server, client and frame reader.
Until setup_metrics() installs a MeterProvider the OpenTelemetry API hands out
no-op instruments, so recording is always safe.
"""

import logging
from typing import Dict, Any

from opentelemetry import metrics
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import (
    ConsoleMetricExporter,
    PeriodicExportingMetricReader
)
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

logger = logging.getLogger(__name__)

# Instrument caches, keyed by metric name
_counters = {}
_up_down_counters = {}
_histograms = {}

def setup_metrics(service_name: str,
                  otlp_endpoint: str = "localhost:4317",
                  export_interval_ms: int = 5000,
                  console: bool = False):
    """Configure OpenTelemetry metrics collection

    Args:
        service_name: Service name
        otlp_endpoint: OTLP receiver address
        export_interval_ms: Metrics export interval in milliseconds
        console: Also print metrics to stdout (development debugging)

    Returns:
        Meter: Meter for the service
    """
    readers = [
        PeriodicExportingMetricReader(
            OTLPMetricExporter(endpoint=otlp_endpoint),
            export_interval_millis=export_interval_ms
        )
    ]
    if console:
        readers.append(PeriodicExportingMetricReader(
            ConsoleMetricExporter(),
            export_interval_millis=export_interval_ms
        ))

    provider = MeterProvider(metric_readers=readers)
    metrics.set_meter_provider(provider)
    meter = metrics.get_meter(service_name)

    logger.info(f"OpenTelemetry metrics configured, service name: {service_name}, OTLP endpoint: {otlp_endpoint}")

    return meter

def get_counter(name: str, description: str, unit: str = "1"):
    """Get or create counter

    Args:
        name: Counter name
        description: Counter description
        unit: Counter unit (default "1", representing count)

    Returns:
        Counter: Counter object
    """
    if name not in _counters:
        meter = metrics.get_meter(__name__)
        _counters[name] = meter.create_counter(
            name=name,
            description=description,
            unit=unit
        )

    return _counters[name]

def get_up_down_counter(name: str, description: str, unit: str = "1"):
    """Get or create a counter that can also decrease (e.g. live connections)"""
    if name not in _up_down_counters:
        meter = metrics.get_meter(__name__)
        _up_down_counters[name] = meter.create_up_down_counter(
            name=name,
            description=description,
            unit=unit
        )

    return _up_down_counters[name]

def get_histogram(name: str, description: str, unit: str = "ms"):
    """Get or create histogram

    Args:
        name: Histogram name
        description: Histogram description
        unit: Histogram unit (default "ms", representing milliseconds)

    Returns:
        Histogram: Histogram object
    """
    if name not in _histograms:
        meter = metrics.get_meter(__name__)
        _histograms[name] = meter.create_histogram(
            name=name,
            description=description,
            unit=unit
        )

    return _histograms[name]

def increment_counter(name: str, amount: int = 1, attributes: Dict[str, Any] = None):
    """Increment counter value

    Args:
        name: Counter name
        amount: Amount to increment
        attributes: Attribute labels
    """
    counter = get_counter(name, f"Counter for {name}")
    counter.add(amount, attributes or {})

def adjust_gauge(name: str, delta: int, attributes: Dict[str, Any] = None):
    """Move an up/down counter by ``delta``"""
    counter = get_up_down_counter(name, f"Gauge for {name}")
    counter.add(delta, attributes or {})

def record_latency(name: str, value_ms: float, attributes: Dict[str, Any] = None):
    """Record latency histogram

    Args:
        name: Histogram name
        value_ms: Latency value in milliseconds
        attributes: Attribute labels
    """
    histogram = get_histogram(name, f"Latency histogram for {name}")
    histogram.record(value_ms, attributes or {})
