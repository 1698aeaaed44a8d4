"""
Prometheus metrics for monitoring.
"""

from functools import lru_cache
from prometheus_client import Counter, Histogram, Info

from az_analyze_image import __version__


class AnalyzeImageMetrics:
    """Analyze Image client metrics."""

    def __init__(self, registry=None):
        kwargs = {"registry": registry} if registry is not None else {}

        self.requests_total = Counter(
            "analyze_image_requests_total",
            "Total Analyze Image requests",
            ["api_version", "source", "status"],
            **kwargs
        )

        self.request_duration = Histogram(
            "analyze_image_request_duration_seconds",
            "Analyze Image request duration",
            ["api_version", "source"],
            buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
            **kwargs
        )

        self.errors_total = Counter(
            "analyze_image_errors_total",
            "Total errors",
            ["api_version", "error_type"],
            **kwargs
        )

        self.detections_total = Counter(
            "analyze_image_detections_total",
            "Detected entities returned by the service",
            ["api_version", "kind"],
            **kwargs
        )

        self.info = Info(
            "analyze_image_client",
            "Analyze Image client information",
            **kwargs
        )
        self.info.info({
            "version": __version__,
            "vision_api": "azure_ai_services"
        })

    def record_request(
        self,
        api_version: str,
        source: str,
        status: str,
        duration: float
    ):
        """Record a completed request."""
        self.requests_total.labels(
            api_version=api_version,
            source=source,
            status=status
        ).inc()

        self.request_duration.labels(
            api_version=api_version,
            source=source
        ).observe(duration)

    def record_detections(self, api_version: str, counts: dict):
        """Record how many entities of each kind a result carried."""
        for kind, count in counts.items():
            if count:
                self.detections_total.labels(
                    api_version=api_version,
                    kind=kind
                ).inc(count)

    def record_error(self, api_version: str, error_type: str):
        """Record an error."""
        self.errors_total.labels(
            api_version=api_version,
            error_type=error_type
        ).inc()


@lru_cache()
def get_metrics() -> AnalyzeImageMetrics:
    """Get singleton metrics instance."""
    return AnalyzeImageMetrics()
