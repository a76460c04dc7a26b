"""
Service layer wiring the storage engine for its callers.
"""
from vehicle_storage.services.storage_admin import StorageAdminService, StorageOverview

__all__ = ["StorageAdminService", "StorageOverview"]
