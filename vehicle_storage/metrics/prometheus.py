"""
Prometheus metrics for the storage engine.

- Storage usage (bytes, object count)
- Cleanup runs (deleted files, failures, bytes freed, duration)
- Alerts currently raised
- Upload compression output sizes
"""
from prometheus_client import Counter, Gauge, Histogram


# ============================================================================
# Usage Metrics
# ============================================================================

storage_used_bytes = Gauge(
    "storage_used_bytes",
    "Total bytes stored in the bucket at the last successful scan",
)

storage_objects_total = Gauge(
    "storage_objects_total",
    "Number of objects in the bucket at the last successful scan",
)


# ============================================================================
# Cleanup Metrics
# ============================================================================

storage_cleanup_runs_total = Counter(
    "storage_cleanup_runs_total",
    "Total number of cleanup runs",
    ["trigger_type", "outcome"],  # outcome: completed | partial | nothing_to_do
)

storage_cleanup_files_deleted_total = Counter(
    "storage_cleanup_files_deleted_total",
    "Objects removed from the bucket by cleanup runs",
    ["trigger_type"],
)

storage_cleanup_delete_failures_total = Counter(
    "storage_cleanup_delete_failures_total",
    "Object deletes that failed during cleanup runs",
    ["trigger_type"],
)

storage_cleanup_bytes_freed_total = Counter(
    "storage_cleanup_bytes_freed_total",
    "Catalog-recorded bytes released by cleanup runs",
    ["trigger_type"],
)

storage_cleanup_duration_seconds = Histogram(
    "storage_cleanup_duration_seconds",
    "Cleanup run duration in seconds",
    ["trigger_type"],
    buckets=[0.1, 0.5, 1.0, 5.0, 15.0, 30.0, 60.0, 300.0, 900.0],
)


# ============================================================================
# Alert Metrics
# ============================================================================

storage_alerts_active = Gauge(
    "storage_alerts_active",
    "Alerts raised by the last evaluation",
    ["severity"],
)


# ============================================================================
# Upload Metrics
# ============================================================================

image_compression_bytes = Histogram(
    "image_compression_bytes",
    "Size of compressed uploads in bytes",
    ["kind"],  # vehicle | logo
    buckets=[10_000, 50_000, 100_000, 150_000, 200_000, 300_000, 500_000, 1_000_000],
)


def record_usage(total_bytes: int, object_count: int) -> None:
    """Publish the result of a bucket scan."""
    storage_used_bytes.set(total_bytes)
    storage_objects_total.set(object_count)


def record_cleanup(
    trigger_type: str,
    deleted: int,
    failed: int,
    bytes_freed: int,
    duration_seconds: float,
) -> None:
    """Publish the outcome of a cleanup run that had targets."""
    outcome = "partial" if failed else "completed"
    storage_cleanup_runs_total.labels(trigger_type=trigger_type, outcome=outcome).inc()
    storage_cleanup_files_deleted_total.labels(trigger_type=trigger_type).inc(deleted)
    storage_cleanup_delete_failures_total.labels(trigger_type=trigger_type).inc(failed)
    storage_cleanup_bytes_freed_total.labels(trigger_type=trigger_type).inc(bytes_freed)
    storage_cleanup_duration_seconds.labels(trigger_type=trigger_type).observe(duration_seconds)
