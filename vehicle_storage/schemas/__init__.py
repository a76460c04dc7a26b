"""
Pydantic schemas for request/response validation.
"""
from vehicle_storage.schemas.storage import (
    StorageStatsResponse,
    SnapshotResponse,
    GrowthPointResponse,
    ZombieTierResponse,
    ZombieReportResponse,
    CleanZombiesRequest,
    CleanupResultResponse,
    CleanupLogResponse,
    AlertResponse,
    TenantConsumptionResponse,
    FileQualityResponse,
    LifecycleRuleResponse,
    LifecycleStatusResponse,
)

__all__ = [
    "StorageStatsResponse",
    "SnapshotResponse",
    "GrowthPointResponse",
    "ZombieTierResponse",
    "ZombieReportResponse",
    "CleanZombiesRequest",
    "CleanupResultResponse",
    "CleanupLogResponse",
    "AlertResponse",
    "TenantConsumptionResponse",
    "FileQualityResponse",
    "LifecycleRuleResponse",
    "LifecycleStatusResponse",
]
