"""
Metrics module for application monitoring.

This module provides Prometheus metrics collection and helper functions.
"""
from vehicle_storage.metrics.prometheus import (
    # Usage Metrics
    storage_used_bytes,
    storage_objects_total,

    # Cleanup Metrics
    storage_cleanup_runs_total,
    storage_cleanup_files_deleted_total,
    storage_cleanup_delete_failures_total,
    storage_cleanup_bytes_freed_total,
    storage_cleanup_duration_seconds,

    # Alert Metrics
    storage_alerts_active,

    # Upload Metrics
    image_compression_bytes,

    # Helpers
    record_usage,
    record_cleanup,
)

__all__ = [
    "storage_used_bytes",
    "storage_objects_total",
    "storage_cleanup_runs_total",
    "storage_cleanup_files_deleted_total",
    "storage_cleanup_delete_failures_total",
    "storage_cleanup_bytes_freed_total",
    "storage_cleanup_duration_seconds",
    "storage_alerts_active",
    "image_compression_bytes",
    "record_usage",
    "record_cleanup",
]
