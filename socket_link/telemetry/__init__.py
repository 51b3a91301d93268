"""
OpenTelemetry Integration Module

Provides tracing and metrics collection for the socket link:
- tracer: Tracer setup and span creation
- metrics: Counters, gauges and latency histograms
"""

from .tracer import setup_tracer, create_span
from .metrics import (
    setup_metrics,
    increment_counter,
    adjust_gauge,
    record_latency
)

__all__ = [
    "setup_tracer",
    "create_span",
    "setup_metrics",
    "increment_counter",
    "adjust_gauge",
    "record_latency"
]
