"""
SQLAlchemy models for the vehicle storage engine.
"""
from vehicle_storage.models.base import Base, as_utc, utcnow
from vehicle_storage.models.catalog import Tenant, Vehicle, ImageRecord
from vehicle_storage.models.storage import UsageSnapshot, CleanupLogEntry

__all__ = [
    "Base",
    "Tenant",
    "Vehicle",
    "ImageRecord",
    "UsageSnapshot",
    "CleanupLogEntry",
    "as_utc",
    "utcnow",
]
