"""Prometheus metrics definitions for the gallery service.

All custom metrics use the ``gallery_`` prefix. HTTP-level metrics (request
count, duration, sizes) come from ``prometheus-fastapi-instrumentator``.
Counters reset to zero on restart.
"""

from __future__ import annotations

from prometheus_client import Counter

_initialized: bool = False

# Record operations (labels: operation, status)
record_operations_total: Counter | None = None

# Best-effort object deletions that failed after the record was removed
object_delete_failures_total: Counter | None = None


def init_metrics() -> None:
    """Create and register all Prometheus metrics.

    Called once when metrics are enabled. When disabled the module-level
    references stay ``None`` and nothing is registered.
    """
    global _initialized
    global record_operations_total, object_delete_failures_total

    if _initialized:
        return

    record_operations_total = Counter(
        "gallery_record_operations_total",
        "Total gallery operations by type and outcome",
        ["operation", "status"],
    )

    object_delete_failures_total = Counter(
        "gallery_object_delete_failures_total",
        "Object store deletions that failed after the record was removed",
    )

    _initialized = True


def observe_operation(operation: str, status: str) -> None:
    """Count one operation outcome; no-op when metrics are disabled."""
    if record_operations_total is not None:
        record_operations_total.labels(operation=operation, status=status).inc()


def observe_object_delete_failure() -> None:
    if object_delete_failures_total is not None:
        object_delete_failures_total.inc()
