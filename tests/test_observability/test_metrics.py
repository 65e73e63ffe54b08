"""Tests for the Prometheus metrics collector."""

from unittest.mock import patch

from prometheus_client import REGISTRY

from src.observability.metrics import MetricsCollector, get_metrics


def _value(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetrics:
    def test_singleton(self):
        assert get_metrics() is get_metrics()
        assert isinstance(get_metrics(), MetricsCollector)

    def test_profile_counter(self):
        before = _value("tc_profiles_computed_total", {"trigger": "submit"})
        get_metrics().profiles_computed.labels(trigger="submit").inc()
        assert _value("tc_profiles_computed_total", {"trigger": "submit"}) == before + 1

    def test_pass_failure_counter(self):
        before = _value("tc_analysis_pass_failures_total", {"reason": "timeout"})
        get_metrics().pass_failures.labels(reason="timeout").inc()
        assert _value("tc_analysis_pass_failures_total", {"reason": "timeout"}) == before + 1

    def test_start_server_uses_port(self):
        with patch("src.observability.metrics.start_http_server") as start:
            get_metrics().start_server(9123)
        start.assert_called_once_with(9123)
