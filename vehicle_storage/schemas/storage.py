"""
Pydantic schemas for the storage administration endpoints.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class StorageStatsResponse(BaseModel):
    """Bucket usage overview."""
    model_config = ConfigDict(from_attributes=True)

    available: bool
    bucket_name: str
    total_size_bytes: int
    file_count: int
    total_images: int = Field(description="Live image records in the catalog")
    avg_file_size_bytes: Optional[int] = None
    largest_file_bytes: Optional[int] = None
    total_space_bytes: Optional[int] = Field(None, description="Configured capacity, null when unknown")
    free_space_bytes: Optional[int] = None
    usage_percent: Optional[float] = None
    growth_30_days_bytes: Optional[int] = None
    generated_at: datetime


class SnapshotResponse(BaseModel):
    available: bool
    total_bytes: Optional[int] = None
    file_count: Optional[int] = None


class GrowthPointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    period: str
    total_bytes: int
    file_count: int


class ZombieTierResponse(BaseModel):
    count: int
    bytes: int


class ZombieReportResponse(BaseModel):
    zombie90: ZombieTierResponse
    zombie180: ZombieTierResponse
    zombie360: ZombieTierResponse


class CleanZombiesRequest(BaseModel):
    days: int = Field(90, description="Inactivity tier: 90, 180 or 360")


class CleanupResultResponse(BaseModel):
    trigger_type: str
    deleted_count: int
    failed_count: int
    bytes_freed: int
    nothing_to_do: bool
    log_id: Optional[str] = None
    summary: str


class CleanupLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    cleaned_at: datetime
    files_removed: int
    files_failed: int
    bytes_freed: int
    trigger_type: str
    trigger_user_id: Optional[str] = None


class AlertResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: str
    severity: str
    message: str


class TenantConsumptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    tenant_id: str
    tenant_name: str
    file_count: int
    bytes: int


class FileQualityResponse(BaseModel):
    available: bool
    total_images: int = 0
    percent_over_2mb: float = 0.0
    percent_not_optimized: float = 0.0
    savings_suggestion_percent: int = 0
    message: Optional[str] = None


class LifecycleRuleResponse(BaseModel):
    id: Optional[str] = None
    status: Optional[str] = None
    abort_multipart_days: Optional[int] = None
    expiration_days: Optional[int] = None


class LifecycleStatusResponse(BaseModel):
    bucket: str
    policies_configured: int
    policies_deployed: bool
    rules: List[LifecycleRuleResponse] = []
