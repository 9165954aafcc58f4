"""
anthropic-client - Prometheus Metrics

Client-side request metrics on a dedicated registry.

Metrics exposed:
- anthropic_client_requests_total: Counter of attempts by method and status
- anthropic_client_request_duration_seconds: Histogram of attempt latency
- anthropic_client_retries_total: Counter of scheduled retries by reason
- anthropic_client_stream_events_total: Counter of decoded stream events by type

Usage:
    from anthropic_client.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.record_request(method="POST", status=200, duration_seconds=1.5)

    # Expose alongside application metrics
    from prometheus_client import generate_latest
    generate_latest(metrics.registry)
"""

from typing import Optional, Union

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest


class MetricsCollector:
    """
    Metrics collector using the Prometheus client.

    Each collector owns its ``CollectorRegistry`` so importing the library
    never registers series on the process-global registry.
    """

    _instance: Optional["MetricsCollector"] = None

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry(auto_describe=True)

        self.requests_total = Counter(
            "anthropic_client_requests_total",
            "Total number of HTTP attempts",
            labelnames=["method", "status"],
            registry=self.registry,
        )

        # Generation calls range from sub-second to several minutes
        self.request_duration = Histogram(
            "anthropic_client_request_duration_seconds",
            "Attempt duration in seconds, up to response headers",
            labelnames=["method"],
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 25.0, 60.0, 120.0, 300.0, float("inf")),
            registry=self.registry,
        )

        self.retries_total = Counter(
            "anthropic_client_retries_total",
            "Total retries scheduled",
            labelnames=["reason"],
            registry=self.registry,
        )

        self.stream_events_total = Counter(
            "anthropic_client_stream_events_total",
            "Total stream events decoded",
            labelnames=["type"],
            registry=self.registry,
        )

    @classmethod
    def get_instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset singleton (for testing)."""
        cls._instance = None

    def record_request(
        self,
        method: str,
        status: Union[int, str],
        duration_seconds: float,
    ) -> None:
        """Record one completed attempt; ``status`` is an HTTP code or an error label."""
        self.requests_total.labels(method=method, status=str(status)).inc()
        self.request_duration.labels(method=method).observe(duration_seconds)

    def record_retry(self, reason: str) -> None:
        self.retries_total.labels(reason=reason).inc()

    def record_stream_event(self, event_type: str) -> None:
        self.stream_events_total.labels(type=event_type).inc()

    def export(self) -> bytes:
        """Render the registry in the Prometheus text format."""
        return generate_latest(self.registry)


def get_metrics() -> MetricsCollector:
    """Get the process-wide metrics collector."""
    return MetricsCollector.get_instance()
