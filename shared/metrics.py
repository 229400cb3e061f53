"""
Shared metrics configuration for the Trakt Edge Gateway.
"""

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info
from typing import Any, Dict, Optional
import threading


class MetricsCollector:
    """Centralized metrics collector for a service."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        self._metrics["service_info"] = Info(
            "service",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type", "service"],
            registry=self.registry
        )

        self._setup_proxy_metrics()

    def _setup_proxy_metrics(self):
        """Set up proxy-specific metrics."""
        self._metrics["rate_limit_rejections_total"] = Counter(
            "rate_limit_rejections_total",
            "Requests rejected by the rate limiter",
            ["upstream"],
            registry=self.registry
        )

        self._metrics["rate_limit_tracked_clients"] = Gauge(
            "rate_limit_tracked_clients",
            "Client records currently held by the rate limiter",
            ["upstream"],
            registry=self.registry
        )

        self._metrics["upstream_requests_total"] = Counter(
            "upstream_requests_total",
            "Requests proxied to the upstream API",
            ["upstream", "method", "status_code"],
            registry=self.registry
        )

        self._metrics["upstream_request_duration_seconds"] = Histogram(
            "upstream_request_duration_seconds",
            "Upstream request duration in seconds",
            ["upstream"],
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str, service: Optional[str] = None):
        """Record error metrics."""
        service_name = service or self.service_name
        self._metrics["errors_total"].labels(error_type=error_type, service=service_name).inc()

    def record_rate_limit_rejection(self, upstream: str):
        self._metrics["rate_limit_rejections_total"].labels(upstream=upstream).inc()

    def record_upstream_request(self, upstream: str, method: str, status_code: int, duration: float):
        """Record one proxied upstream call."""
        self._metrics["upstream_requests_total"].labels(
            upstream=upstream,
            method=method,
            status_code=str(status_code)
        ).inc()
        self._metrics["upstream_request_duration_seconds"].labels(upstream=upstream).observe(duration)

    def set_gauge(self, metric_name: str, value: float, **labels):
        """Set a gauge metric value."""
        if metric_name in self._metrics:
            with self._lock:
                self._metrics[metric_name].labels(**labels).set(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
