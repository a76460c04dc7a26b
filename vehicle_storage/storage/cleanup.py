"""
Storage Garbage Collector

Reclaims vehicle photos under two selection strategies:
- Inactivity ("zombie_90" / "zombie_180" / "zombie_360"): live images on
  live vehicles of tenants inactive beyond the tier
- Orphans ("obsolete"): live images whose vehicle is soft-deleted

Both share one execution contract:
1. Resolve the target set (read-only)
2. No targets: return a nothing-to-do result and write no log entry
3. Delete every target key concurrently; failures do not stop the others
4. ``bytes_freed`` sums catalog sizes over all targets, whatever the
   per-object outcome
5. Soft-delete every target record
6. Append one CleanupLogEntry in the same transaction

Re-running after a successful run finds no targets. A run interrupted
part-way resumes naturally since finished records are already soft-deleted.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vehicle_storage.core.exceptions import TransientStoreError, ValidationError
from vehicle_storage.core.locks import LockManager, get_default_lock_manager
from vehicle_storage.metrics import record_cleanup, storage_cleanup_runs_total
from vehicle_storage.models import CleanupLogEntry, ImageRecord, Vehicle, utcnow
from vehicle_storage.storage.gateway import ObjectStoreGateway
from vehicle_storage.storage.inactivity import InactivityClassifier, validate_tier

logger = logging.getLogger(__name__)

OBSOLETE = "obsolete"

# Inactivity tiers nest, so every tier shares one lock
ZOMBIE_LOCK = "cleanup:zombie"
OBSOLETE_LOCK = "cleanup:obsolete"


@dataclass(frozen=True)
class CleanupTarget:
    """Image record selected for reclamation, captured at selection time"""
    id: str
    key: str
    size_bytes: int


@dataclass
class CleanupResult:
    """
    Cleanup run result.

    ``nothing_to_do`` distinguishes an empty target set from a run that
    executed and freed zero bytes.
    """
    trigger_type: str
    deleted_count: int = 0
    failed_count: int = 0
    bytes_freed: int = 0
    affected_ids: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    nothing_to_do: bool = False
    log_id: Optional[str] = None
    duration_seconds: float = 0.0

    @property
    def bytes_freed_mb(self) -> float:
        return self.bytes_freed / (1024 ** 2)

    @property
    def summary(self) -> str:
        if self.nothing_to_do:
            if self.trigger_type == OBSOLETE:
                return "No obsolete images found."
            days = self.trigger_type.split("_")[-1]
            return f"No images from tenants inactive for {days}+ days."
        if self.failed_count:
            return f"{self.deleted_count} removed, {self.failed_count} failed."
        return f"{self.deleted_count} file(s) removed. {self.bytes_freed_mb:.2f} MB freed."

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trigger_type': self.trigger_type,
            'deleted_count': self.deleted_count,
            'failed_count': self.failed_count,
            'bytes_freed': self.bytes_freed,
            'bytes_freed_mb': round(self.bytes_freed_mb, 2),
            'nothing_to_do': self.nothing_to_do,
            'log_id': self.log_id,
            'summary': self.summary,
            'duration_seconds': round(self.duration_seconds, 2),
        }


def trigger_type_for(strategy: Union[int, str]) -> str:
    """
    Map a cleanup strategy to its trigger type.

    Raises:
        ValidationError: Unless strategy is 90, 180, 360 or "obsolete"
    """
    if strategy == OBSOLETE:
        return OBSOLETE
    return f"zombie_{validate_tier(strategy)}"


class GarbageCollector:
    """
    Garbage collector for vehicle photos.

    Deletes fan out over a bounded thread pool; the advisory lock keeps two
    runs of the same trigger family from racing over one target set.
    """

    def __init__(
        self,
        gateway: ObjectStoreGateway,
        classifier: InactivityClassifier,
        db: Session,
        lock_manager: Optional[LockManager] = None,
        max_workers: int = 16,
    ):
        """
        Args:
            gateway: Store gateway used for deletes
            classifier: Tenant inactivity classifier
            db: Catalog session
            lock_manager: Advisory lock backend
            max_workers: Upper bound on concurrent deletes
        """
        self.gateway = gateway
        self.classifier = classifier
        self.db = db
        self.lock_manager = lock_manager or get_default_lock_manager()
        self.max_workers = max_workers

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_inactive_targets(self, tier: int, now: Optional[datetime] = None) -> List[CleanupTarget]:
        tenant_ids = self.classifier.inactive_tenant_ids(tier, now=now)
        return [self._target(image) for image in self.classifier.zombie_images(tenant_ids)]

    def select_obsolete_targets(self) -> List[CleanupTarget]:
        images = self.db.execute(
            select(ImageRecord)
            .join(Vehicle, ImageRecord.vehicle_id == Vehicle.id)
            .where(
                ImageRecord.deleted_at.is_(None),
                Vehicle.deleted_at.is_not(None),
            )
            .order_by(ImageRecord.id)
        ).scalars()
        return [self._target(image) for image in images]

    def _target(self, image: ImageRecord) -> CleanupTarget:
        return CleanupTarget(id=image.id, key=image.key, size_bytes=int(image.size_bytes or 0))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(
        self,
        strategy: Union[int, str],
        triggered_by: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CleanupResult:
        """
        Run one cleanup.

        Args:
            strategy: 90, 180, 360 or "obsolete"
            triggered_by: Id of the user who asked for it, None for the scheduler
            now: Reference time, defaults to the current UTC time

        Returns:
            CleanupResult

        Raises:
            ValidationError: For an unknown strategy, before any side effect
            CleanupInProgressError: If a run of the same family is in flight
        """
        trigger_type = trigger_type_for(strategy)
        lock_name = OBSOLETE_LOCK if trigger_type == OBSOLETE else ZOMBIE_LOCK
        now = now or utcnow()

        with self.lock_manager.hold(lock_name):
            if trigger_type == OBSOLETE:
                targets = self.select_obsolete_targets()
            else:
                targets = self.select_inactive_targets(int(strategy), now=now)

            if not targets:
                logger.info(f"Cleanup {trigger_type}: nothing to do")
                storage_cleanup_runs_total.labels(trigger_type=trigger_type, outcome="nothing_to_do").inc()
                return CleanupResult(trigger_type=trigger_type, nothing_to_do=True)

            return self._execute(trigger_type, targets, triggered_by, now)

    def _execute(
        self,
        trigger_type: str,
        targets: List[CleanupTarget],
        triggered_by: Optional[str],
        now: datetime,
    ) -> CleanupResult:
        start_time = time.monotonic()
        logger.info(f"Starting cleanup {trigger_type}: {len(targets)} targets")

        errors = self._delete_all(targets)
        failed_count = len(errors)
        deleted_count = len(targets) - failed_count
        bytes_freed = sum(target.size_bytes for target in targets)
        affected_ids = [target.id for target in targets]

        if errors:
            logger.warning(
                f"Cleanup {trigger_type}: {failed_count} store deletes failed",
                extra={"trigger_type": trigger_type, "errors": errors[:10]},
            )

        log_entry = CleanupLogEntry(
            cleaned_at=now,
            files_removed=deleted_count,
            files_failed=failed_count,
            bytes_freed=bytes_freed,
            trigger_type=trigger_type,
            trigger_user_id=triggered_by,
            affected_ids=affected_ids,
        )
        try:
            self.db.execute(
                update(ImageRecord)
                .where(ImageRecord.id.in_(affected_ids))
                .values(deleted_at=now)
                .execution_options(synchronize_session=False)
            )
            self.db.add(log_entry)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Cleanup {trigger_type}: catalog update failed")
            raise

        duration = time.monotonic() - start_time
        record_cleanup(trigger_type, deleted_count, failed_count, bytes_freed, duration)

        result = CleanupResult(
            trigger_type=trigger_type,
            deleted_count=deleted_count,
            failed_count=failed_count,
            bytes_freed=bytes_freed,
            affected_ids=affected_ids,
            errors=errors,
            log_id=log_entry.id,
            duration_seconds=duration,
        )
        logger.info(
            f"Cleanup completed: {trigger_type} - {result.summary}",
            extra={
                "trigger_type": trigger_type,
                "files_removed": deleted_count,
                "files_failed": failed_count,
                "bytes_freed": bytes_freed,
            },
        )
        return result

    def _delete_all(self, targets: List[CleanupTarget]) -> List[str]:
        """Delete every key; returns one error message per failed delete."""
        workers = max(1, min(self.max_workers, len(targets)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="storage-gc") as pool:
            futures = [(target, pool.submit(self.gateway.delete, target.key)) for target in targets]

            errors = []
            for target, future in futures:
                try:
                    future.result()
                except TransientStoreError as e:
                    errors.append(f"Failed to delete {target.key}: {e}")
                except Exception as e:
                    # Client-side rejections (malformed key) fail this target only
                    logger.exception(f"Unexpected error deleting {target.key}")
                    errors.append(f"Failed to delete {target.key}: {type(e).__name__}: {e}")
            return errors
