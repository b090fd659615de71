"""
Prometheus metrics for the availability engine.

Service timings come from the @measure_operation decorator; lock and cache
outcomes are recorded where they happen. Metrics live in a private registry
so embedding processes decide whether and how to expose them.
"""

from typing import Optional

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "availability_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "availability_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "availability_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

provider_lock_total = Counter(
    "availability_provider_lock_total",
    "Per-provider write lock outcomes",
    ["action", "outcome"],
    registry=REGISTRY,
)

resolved_window_cache_total = Counter(
    "availability_resolved_window_cache_total",
    "Resolved window cache lookups and invalidations",
    ["result"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Thin facade so call sites do not touch metric objects directly."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()
        if error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_provider_lock(action: str, outcome: str) -> None:
        provider_lock_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def record_cache(result: str) -> None:
        resolved_window_cache_total.labels(result=result).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return generate_latest(REGISTRY)

    @staticmethod
    def content_type() -> str:
        return CONTENT_TYPE_LATEST


prometheus_metrics = PrometheusMetrics()
