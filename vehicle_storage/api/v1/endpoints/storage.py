"""
Storage Administration Endpoints

Dashboard data and reclamation actions for the image bucket:
- Usage, growth series and alerts
- Zombie report and inactivity cleanup
- Obsolete (soft-deleted vehicle) cleanup
- Cleanup history, top consumers, file quality
- Bucket lifecycle
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from vehicle_storage.api.deps import get_storage_service, get_triggering_user
from vehicle_storage.schemas.storage import (
    AlertResponse,
    CleanupLogResponse,
    CleanupResultResponse,
    CleanZombiesRequest,
    FileQualityResponse,
    GrowthPointResponse,
    LifecycleStatusResponse,
    SnapshotResponse,
    StorageStatsResponse,
    TenantConsumptionResponse,
    ZombieReportResponse,
)
from vehicle_storage.services import StorageAdminService
from vehicle_storage.storage.cleanup import OBSOLETE, CleanupResult
from vehicle_storage.storage.gateway import Available

router = APIRouter(prefix="/admin/storage", tags=["storage"])


def _cleanup_response(result: CleanupResult) -> CleanupResultResponse:
    return CleanupResultResponse(
        trigger_type=result.trigger_type,
        deleted_count=result.deleted_count,
        failed_count=result.failed_count,
        bytes_freed=result.bytes_freed,
        nothing_to_do=result.nothing_to_do,
        log_id=result.log_id,
        summary=result.summary,
    )


@router.get("", response_model=StorageStatsResponse)
def get_storage_stats(service: StorageAdminService = Depends(get_storage_service)):
    """Bucket usage, capacity and 30-day growth"""
    return StorageStatsResponse.model_validate(service.get_stats())


@router.post("/snapshot", response_model=SnapshotResponse)
def run_snapshot(service: StorageAdminService = Depends(get_storage_service)):
    """Record today's usage snapshot (called by the daily scheduler)"""
    stats = service.run_snapshot()
    if isinstance(stats, Available):
        return SnapshotResponse(
            available=True,
            total_bytes=stats.value.total_bytes,
            file_count=stats.value.object_count,
        )
    return SnapshotResponse(available=False)


@router.get("/growth", response_model=List[GrowthPointResponse])
def get_storage_growth(
    granularity: str = Query("day", description="day | week | month"),
    limit: int = Query(90, ge=1, le=365),
    service: StorageAdminService = Depends(get_storage_service),
):
    """Growth time series"""
    return [GrowthPointResponse.model_validate(p) for p in service.get_growth_series(granularity, limit)]


@router.get("/zombies", response_model=ZombieReportResponse)
def get_zombie_files(service: StorageAdminService = Depends(get_storage_service)):
    """Images of tenants inactive for 90, 180 and 360 days"""
    return ZombieReportResponse(**service.get_zombie_report().to_dict())


@router.post("/clean-zombies", response_model=CleanupResultResponse)
def clean_zombie_files(
    data: CleanZombiesRequest,
    user_id: Optional[str] = Depends(get_triggering_user),
    service: StorageAdminService = Depends(get_storage_service),
):
    """Remove images of tenants inactive for the given tier"""
    return _cleanup_response(service.run_cleanup(data.days, triggering_user_id=user_id))


@router.post("/clean-obsolete", response_model=CleanupResultResponse)
def clean_obsolete_storage(
    user_id: Optional[str] = Depends(get_triggering_user),
    service: StorageAdminService = Depends(get_storage_service),
):
    """Remove images linked to soft-deleted vehicles"""
    return _cleanup_response(service.run_cleanup(OBSOLETE, triggering_user_id=user_id))


@router.get("/alerts", response_model=List[AlertResponse])
def get_storage_alerts(service: StorageAdminService = Depends(get_storage_service)):
    return [AlertResponse.model_validate(alert) for alert in service.get_alerts()]


@router.get("/cleanup-history", response_model=List[CleanupLogResponse])
def get_cleanup_history(
    limit: int = Query(50, ge=1, le=100),
    service: StorageAdminService = Depends(get_storage_service),
):
    return [CleanupLogResponse.model_validate(entry) for entry in service.cleanup_history(limit)]


@router.get("/top-consumers", response_model=List[TenantConsumptionResponse])
def get_top_consumers(service: StorageAdminService = Depends(get_storage_service)):
    return [TenantConsumptionResponse.model_validate(c) for c in service.top_consumers()]


@router.get("/quality", response_model=FileQualityResponse)
def get_file_quality(service: StorageAdminService = Depends(get_storage_service)):
    """Share of oversized and unoptimized images"""
    quality = service.file_quality()
    if not isinstance(quality, Available):
        return FileQualityResponse(available=False)

    q = quality.value
    return FileQualityResponse(
        available=True,
        total_images=q.total_images,
        percent_over_2mb=q.percent_over_2mb,
        percent_not_optimized=q.percent_not_optimized,
        savings_suggestion_percent=q.savings_suggestion_percent,
        message=q.message,
    )


@router.get("/lifecycle", response_model=LifecycleStatusResponse)
def get_lifecycle(service: StorageAdminService = Depends(get_storage_service)):
    return service.lifecycle_status()


@router.put("/lifecycle", response_model=LifecycleStatusResponse)
def apply_lifecycle(service: StorageAdminService = Depends(get_storage_service)):
    """Deploy the multipart-abort lifecycle rule to the bucket"""
    service.apply_lifecycle()
    return service.lifecycle_status()
