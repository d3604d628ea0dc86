"""
Prometheus metrics for the Athena session engine.

Service operation timings come from the @measure_operation decorator on
BaseService; session-lock and room-provisioning outcomes are recorded by
their owning modules. All series live on a private registry.
"""

from typing import Optional, cast

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Create a custom registry to avoid conflicts with default metrics
REGISTRY = CollectorRegistry()

service_operation_duration_seconds = Histogram(
    "athena_service_operation_duration_seconds",
    "Service operation duration in seconds",
    ["service", "operation"],
    registry=REGISTRY,
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

service_operations_total = Counter(
    "athena_service_operations_total",
    "Total number of service operations",
    ["service", "operation", "status"],
    registry=REGISTRY,
)

errors_total = Counter(
    "athena_errors_total",
    "Total number of errors",
    ["service", "operation", "error_type"],
    registry=REGISTRY,
)

session_lock_events_total = Counter(
    "athena_session_lock_events_total",
    "Per-creator booking lock acquire/release outcomes",
    ["action", "outcome"],
    registry=REGISTRY,
)

room_provisioning_total = Counter(
    "athena_room_provisioning_total",
    "Video room provisioning attempts by provider and outcome",
    ["provider", "outcome"],
    registry=REGISTRY,
)


class PrometheusMetrics:
    """Records and exposes Prometheus metrics."""

    @staticmethod
    def record_service_operation(
        service: str,
        operation: str,
        duration: float,
        status: str = "success",
        error_type: Optional[str] = None,
    ) -> None:
        """
        Record service operation metrics from @measure_operation decorator.

        Args:
            service: Service name (e.g., 'SessionBookingService')
            operation: Operation/method name (e.g., 'book_session')
            duration: Operation duration in seconds
            status: Operation status ('success' or 'error')
            error_type: Type of error if status is 'error'
        """
        service_operation_duration_seconds.labels(service=service, operation=operation).observe(
            duration
        )
        service_operations_total.labels(service=service, operation=operation, status=status).inc()

        if status == "error" and error_type:
            errors_total.labels(service=service, operation=operation, error_type=error_type).inc()

    @staticmethod
    def record_session_lock(action: str, outcome: str) -> None:
        session_lock_events_total.labels(action=action, outcome=outcome).inc()

    @staticmethod
    def record_room_provisioning(provider: str, outcome: str) -> None:
        room_provisioning_total.labels(provider=provider, outcome=outcome).inc()

    @staticmethod
    def get_metrics() -> bytes:
        return cast(bytes, generate_latest(REGISTRY))

    @staticmethod
    def get_content_type() -> str:
        """Get the content type for Prometheus metrics."""
        return cast(str, CONTENT_TYPE_LATEST)


# Singleton instance
prometheus_metrics = PrometheusMetrics()
