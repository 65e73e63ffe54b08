"""
Prometheus metrics for profile computation and multi-pass analysis.

Tracks:
- Profile computations and quiz validation failures
- AI passes requested, completed and failed (by reason)
- Aggregation latency and passes-per-analysis
- Risk levels produced

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import Counter, Histogram, start_http_server

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0)


class MetricsCollector:
    """
    Prometheus metrics collector for the personalization risk engine.

    Usage:
        metrics = get_metrics()
        metrics.profiles_computed.labels(trigger="submit").inc()
        metrics.pass_failures.labels(reason="timeout").inc()
    """

    def __init__(self) -> None:
        # Profile computation
        self.profiles_computed = Counter(
            "tc_profiles_computed_total",
            "Total personalization profiles computed",
            ["trigger"],  # submit, update, stale
        )

        self.profile_validation_failures = Counter(
            "tc_profile_validation_failures_total",
            "Quiz responses rejected by validation",
            ["field"],
        )

        # Multi-pass analysis
        self.passes_requested = Counter(
            "tc_analysis_passes_requested_total",
            "Total AI analysis passes requested",
        )

        self.passes_completed = Counter(
            "tc_analysis_passes_completed_total",
            "Total AI analysis passes that returned a usable result",
        )

        self.pass_failures = Counter(
            "tc_analysis_pass_failures_total",
            "AI analysis passes dropped before aggregation",
            ["reason"],  # timeout, error, invalid, circuit_open, cancelled
        )

        self.pass_latency = Histogram(
            "tc_analysis_pass_latency_seconds",
            "Time for a single AI analysis pass",
            buckets=LATENCY_BUCKETS,
        )

        self.analysis_latency = Histogram(
            "tc_analysis_latency_seconds",
            "Time from first pass issued to aggregated result",
            buckets=LATENCY_BUCKETS,
        )

        self.passes_per_analysis = Histogram(
            "tc_analysis_passes_aggregated",
            "Number of passes handed to the aggregator per analysis",
            buckets=(0, 1, 2, 3, 4, 5, 7, 10),
        )

        self.risk_levels = Counter(
            "tc_analysis_risk_levels_total",
            "Aggregated results by risk level",
            ["risk_level"],
        )

        self.analyses_unavailable = Counter(
            "tc_analysis_unavailable_total",
            "Analyses that ended with no usable pass",
        )

    def start_server(self, port: int | None = None) -> None:
        """
        Start HTTP server for Prometheus metrics scraping.

        Args:
            port: Port to listen on (defaults to settings.metrics_port)
        """
        port = port or get_settings().metrics_port
        start_http_server(port)
        logger.info("Metrics server started on port %d", port)


_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get the process-wide metrics collector (registered once)."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
