"""
Tests for the OpenTelemetry helpers
"""
from unittest.mock import MagicMock, patch

from opentelemetry import trace

from socket_link.telemetry import metrics as link_metrics
from socket_link.telemetry.tracer import create_span


class TestMetrics:
    """Test instrument helpers"""

    def test_instruments_cached_by_name(self):
        first = link_metrics.get_counter("test.cached", "Counter for test.cached")
        second = link_metrics.get_counter("test.cached", "another description")
        assert first is second

    def test_recording_without_provider(self):
        """Recording is a no-op until metrics are set up"""
        link_metrics.increment_counter("test.requests", 1, {"type": "x"})
        link_metrics.adjust_gauge("test.active", 1)
        link_metrics.adjust_gauge("test.active", -1)
        link_metrics.record_latency("test.latency", 1.5)

    def test_increment_counter_uses_attributes(self):
        counter = MagicMock()
        with patch.object(link_metrics, "get_counter", return_value=counter):
            link_metrics.increment_counter("test.errors", 2, {"type": "timeout"})
        counter.add.assert_called_once_with(2, {"type": "timeout"})

    def test_record_latency(self):
        histogram = MagicMock()
        with patch.object(link_metrics, "get_histogram", return_value=histogram):
            link_metrics.record_latency("test.latency", 12.5)
        histogram.record.assert_called_once_with(12.5, {})


class TestTracer:
    """Test span creation"""

    def test_default_kind_is_internal(self):
        tracer = MagicMock()
        with patch.object(trace, "get_tracer", return_value=tracer):
            create_span("socket_link.test")
        tracer.start_as_current_span.assert_called_once_with(
            "socket_link.test", attributes={}, kind=trace.SpanKind.INTERNAL
        )

    def test_span_context_manager(self):
        with create_span("socket_link.test", {"request.id": "svc.0.0"}, trace.SpanKind.SERVER) as span:
            assert span is not None
