"""
Prometheus metrics for locked job execution.
"""

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
)

from joblock.constants import (
    METRIC_LOCK_ACQUIRED,
    METRIC_LOCK_RELEASE_FAILED,
    METRIC_LOCK_SKIPPED,
    METRIC_LOCK_STORE_ERRORS,
    METRIC_LOCKED_JOB_DURATION,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for job locks.

    Collects metrics for:
    - Lock acquisitions and skips
    - Release failures (possible stale locks)
    - Store communication errors
    - Execution duration of locked jobs
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.lock_acquired = Counter(
            METRIC_LOCK_ACQUIRED,
            "Total number of job locks acquired",
            ["job_type"],
            registry=self._registry,
        )

        self.lock_skipped = Counter(
            METRIC_LOCK_SKIPPED,
            "Total number of job runs skipped because the lock was held",
            ["job_type"],
            registry=self._registry,
        )

        self.lock_release_failed = Counter(
            METRIC_LOCK_RELEASE_FAILED,
            "Total number of failed lock releases",
            ["job_type"],
            registry=self._registry,
        )

        self.lock_store_errors = Counter(
            METRIC_LOCK_STORE_ERRORS,
            "Total number of lock store communication errors",
            ["job_type", "operation"],
            registry=self._registry,
        )

        self.locked_job_duration = Histogram(
            METRIC_LOCKED_JOB_DURATION,
            "Execution duration of jobs run under a lock, in seconds",
            ["job_type", "status"],
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
            registry=self._registry,
        )

    def record_lock_acquired(self, job_type: str) -> None:
        self.lock_acquired.labels(job_type=job_type).inc()

    def record_lock_skipped(self, job_type: str) -> None:
        self.lock_skipped.labels(job_type=job_type).inc()

    def record_release_failed(self, job_type: str) -> None:
        self.lock_release_failed.labels(job_type=job_type).inc()

    def record_store_error(self, job_type: str, operation: str) -> None:
        self.lock_store_errors.labels(job_type=job_type, operation=operation).inc()

    def record_job_duration(
        self,
        job_type: str,
        status: str,
        duration_seconds: float,
    ) -> None:
        """Record how long a locked job ran."""
        self.locked_job_duration.labels(job_type=job_type, status=status).observe(
            duration_seconds
        )


def setup_metrics(registry: CollectorRegistry | None = None) -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Args:
        registry: Optional custom registry, used only on first setup.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector(registry)
    return _metrics


def get_metrics() -> MetricsCollector:
    """Get the metrics collector instance, creating it on first use."""
    if _metrics is None:
        return setup_metrics()
    return _metrics
