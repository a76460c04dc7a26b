"""
Storage administration service.

Single entry point used by the HTTP layer and the daily scheduler. Wires the
gateway, accountant, classifier, collector and alert evaluator for one
database session.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from vehicle_storage.core.config import Settings, settings as default_settings
from vehicle_storage.core.locks import LockManager, get_default_lock_manager
from vehicle_storage.models import ImageRecord, utcnow
from vehicle_storage.storage.alerts import GROWTH_WINDOW_DAYS, Alert, AlertEvaluator
from vehicle_storage.storage.cleanup import CleanupResult, GarbageCollector
from vehicle_storage.storage.gateway import Available, ObjectStoreGateway, StoreResult
from vehicle_storage.storage.inactivity import InactivityClassifier, ZombieReport
from vehicle_storage.storage.insights import FileQuality, StorageInsights, TenantConsumption
from vehicle_storage.storage.lifecycle import LifecyclePolicyManager
from vehicle_storage.storage.usage import GrowthPoint, UsageAccountant, UsageStats

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class StorageOverview:
    """Dashboard view of the bucket"""
    available: bool
    bucket_name: str
    total_size_bytes: int
    file_count: int
    total_images: int
    avg_file_size_bytes: Optional[int]
    largest_file_bytes: Optional[int]
    total_space_bytes: Optional[int]
    free_space_bytes: Optional[int]
    usage_percent: Optional[float]
    growth_30_days_bytes: Optional[int]
    generated_at: datetime


class StorageAdminService:
    """
    Public operations of the storage engine.

    Example:
        >>> service = StorageAdminService(db, gateway, lock_manager)
        >>> service.run_cleanup(360, triggering_user_id=user.id)
    """

    def __init__(
        self,
        db: Session,
        gateway: ObjectStoreGateway,
        lock_manager: Optional[LockManager] = None,
        settings: Settings = default_settings,
    ):
        self.db = db
        self.gateway = gateway
        self.settings = settings
        self.accountant = UsageAccountant(gateway, db)
        self.classifier = InactivityClassifier(db)
        self.collector = GarbageCollector(
            gateway,
            self.classifier,
            db,
            lock_manager=lock_manager or get_default_lock_manager(),
            max_workers=settings.GC_DELETE_WORKERS,
        )
        self.alert_evaluator = AlertEvaluator()
        self.insights = StorageInsights(db)

    # ------------------------------------------------------------------
    # Usage
    # ------------------------------------------------------------------

    def run_snapshot(self, now: Optional[datetime] = None) -> StoreResult[UsageStats]:
        """
        Record today's usage snapshot. Nothing is written when the store is
        unavailable, so an outage never shows up as an empty bucket.
        """
        stats = self.accountant.get_current_stats()
        if isinstance(stats, Available):
            self.accountant.snapshot_today(stats.value.total_bytes, stats.value.object_count, now=now)
        else:
            logger.warning(f"Snapshot skipped: {stats.reason}")
        return stats

    def get_stats(self, now: Optional[datetime] = None) -> StorageOverview:
        """
        Bucket totals with capacity and 30-day growth. Also refreshes
        today's snapshot when the store answered.
        """
        now = now or utcnow()
        stats = self.accountant.get_current_stats()
        usage = stats.value if isinstance(stats, Available) else UsageStats(0, 0, 0)

        prior = self.accountant.get_snapshot_days_ago(GROWTH_WINDOW_DAYS, now=now)
        if isinstance(stats, Available):
            self.accountant.snapshot_today(usage.total_bytes, usage.object_count, now=now)

        limit = self.settings.storage_limit_bytes
        total_images = self.db.execute(
            select(func.count(ImageRecord.id)).where(ImageRecord.deleted_at.is_(None))
        ).scalar_one()

        return StorageOverview(
            available=isinstance(stats, Available),
            bucket_name=self.gateway.bucket_name,
            total_size_bytes=usage.total_bytes,
            file_count=usage.object_count,
            total_images=total_images,
            avg_file_size_bytes=usage.average_object_bytes,
            largest_file_bytes=usage.largest_object_bytes or None,
            total_space_bytes=limit,
            free_space_bytes=max(0, limit - usage.total_bytes) if limit is not None else None,
            usage_percent=min(100.0, round(usage.total_bytes / limit * 100, 1)) if limit else None,
            growth_30_days_bytes=(
                usage.total_bytes - int(prior.total_bytes) if prior is not None else None
            ),
            generated_at=now,
        )

    def get_growth_series(self, granularity: str = "day", limit: int = 90) -> List[GrowthPoint]:
        return self.accountant.get_growth_series(granularity, limit)

    # ------------------------------------------------------------------
    # Reclamation
    # ------------------------------------------------------------------

    def get_zombie_report(self, now: Optional[datetime] = None) -> ZombieReport:
        return self.classifier.zombie_report(self.gateway.list_sizes(), now=now)

    def run_cleanup(
        self,
        strategy: Union[int, str],
        triggering_user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CleanupResult:
        return self.collector.run(strategy, triggered_by=triggering_user_id, now=now)

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def get_alerts(self, now: Optional[datetime] = None) -> List[Alert]:
        stats = self.accountant.get_current_stats()
        if not isinstance(stats, Available):
            return self.alert_evaluator.evaluate(stats)

        prior = self.accountant.get_snapshot_days_ago(GROWTH_WINDOW_DAYS, now=now)
        return self.alert_evaluator.evaluate(
            stats,
            prior_total_bytes=int(prior.total_bytes) if prior is not None else None,
            capacity_bytes=self.settings.storage_limit_bytes,
        )

    # ------------------------------------------------------------------
    # Insights and bucket administration
    # ------------------------------------------------------------------

    def top_consumers(self, limit: int = 50) -> List[TenantConsumption]:
        return self.insights.top_consumers(self.gateway.list_sizes(), limit=limit)

    def cleanup_history(self, limit: int = 50):
        return self.insights.cleanup_history(limit=limit)

    def file_quality(self) -> StoreResult[FileQuality]:
        return self.insights.file_quality(self.gateway.list_sizes())

    def lifecycle_manager(self) -> LifecyclePolicyManager:
        return LifecyclePolicyManager(self.gateway, abort_multipart_days=self.settings.MULTIPART_ABORT_DAYS)

    def lifecycle_status(self) -> dict:
        return self.lifecycle_manager().status()

    def apply_lifecycle(self) -> bool:
        return self.lifecycle_manager().apply()
