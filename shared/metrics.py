"""
Shared metrics configuration for the RBAC access service.
"""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry
from typing import Dict, Any, Optional
import threading


class MetricsCollector:
    """Centralized metrics collector for a service.

    Each collector owns its registry so several service instances (tests,
    embedded use) never collide on metric names.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        self._metrics["service_info"] = Info(
            "service_info",
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

        self._setup_policy_metrics()

    def _setup_policy_metrics(self):
        """Set up policy engine metrics."""
        self._metrics["enforce_decisions_total"] = Counter(
            "enforce_decisions_total",
            "Total enforcement decisions",
            ["decision"],
            registry=self.registry
        )

        self._metrics["enforce_duration_seconds"] = Histogram(
            "enforce_duration_seconds",
            "Enforcement duration in seconds, policy reload included",
            registry=self.registry
        )

        self._metrics["policy_reloads_total"] = Counter(
            "policy_reloads_total",
            "Total policy reloads from storage",
            ["status"],
            registry=self.registry
        )

        self._metrics["policy_saves_total"] = Counter(
            "policy_saves_total",
            "Total policy saves to storage",
            ["status"],
            registry=self.registry
        )

        self._metrics["role_assignments_total"] = Counter(
            "role_assignments_total",
            "Total role assignment mutations",
            ["operation", "result"],
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

    def record_decision(self, allowed: bool, duration: float):
        """Record one enforcement decision."""
        decision = "allow" if allowed else "deny"
        self._metrics["enforce_decisions_total"].labels(decision=decision).inc()
        self._metrics["enforce_duration_seconds"].observe(duration)

    def record_reload(self, status: str):
        self._metrics["policy_reloads_total"].labels(status=status).inc()

    def record_save(self, status: str):
        self._metrics["policy_saves_total"].labels(status=status).inc()

    def record_assignment(self, operation: str, result: str):
        """Record a role assignment mutation outcome."""
        self._metrics["role_assignments_total"].labels(operation=operation, result=result).inc()

    def sample(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Read the current value of a sample from this collector's registry."""
        with self._lock:
            value = self.registry.get_sample_value(name, labels or {})
        return value or 0.0


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
