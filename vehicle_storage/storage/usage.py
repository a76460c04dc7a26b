"""
Storage Usage Accounting

- Current bucket totals from a single pass over the object listing
- One usage snapshot per UTC day (upserted, so repeated runs are safe)
- Growth series bucketed by day, week (Sunday start) or month
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from vehicle_storage.core.exceptions import TransientStoreError, ValidationError
from vehicle_storage.metrics import record_usage
from vehicle_storage.models import UsageSnapshot, utcnow
from vehicle_storage.storage.gateway import (
    Available,
    ObjectStoreGateway,
    StoreResult,
    Unavailable,
)

logger = logging.getLogger(__name__)

GRANULARITIES = ("day", "week", "month")
DEFAULT_GROWTH_LIMIT = 90
MAX_GROWTH_LIMIT = 365

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


@dataclass(frozen=True)
class UsageStats:
    """Aggregate bucket totals"""
    total_bytes: int
    object_count: int
    largest_object_bytes: int

    @property
    def average_object_bytes(self) -> Optional[int]:
        if self.object_count == 0:
            return None
        return round(self.total_bytes / self.object_count)


@dataclass(frozen=True)
class GrowthPoint:
    period: str  # YYYY-MM-DD for day/week, YYYY-MM for month
    total_bytes: int
    file_count: int


def period_key(day: date, granularity: str) -> str:
    """
    Bucket key for a snapshot date.

    Weeks start on Sunday: the key is the date of the preceding (or same)
    Sunday.
    """
    if granularity == "month":
        return f"{day.year:04d}-{day.month:02d}"
    if granularity == "week":
        days_since_sunday = (day.weekday() + 1) % 7
        return (day - timedelta(days=days_since_sunday)).isoformat()
    return day.isoformat()


class UsageAccountant:
    """
    Usage statistics and snapshot history for one bucket.

    The stats pass is O(object count); it runs on demand from the admin
    dashboard and once a day from the scheduler, never per request.
    """

    def __init__(self, gateway: ObjectStoreGateway, db: Session):
        self.gateway = gateway
        self.db = db

    def get_current_stats(self) -> StoreResult[UsageStats]:
        """
        Reduce the bucket listing to totals.

        Returns:
            Available(UsageStats), or Unavailable when the bucket is missing,
            unreachable, or the listing breaks part-way (partial totals are
            never reported)
        """
        if not self.gateway.is_available():
            return Unavailable(f"bucket '{self.gateway.bucket_name}' unavailable")

        total_bytes = 0
        object_count = 0
        largest = 0
        try:
            for obj in self.gateway.list_all():
                object_count += 1
                total_bytes += obj.size
                if obj.size > largest:
                    largest = obj.size
        except TransientStoreError as e:
            logger.warning(f"Usage scan aborted after {object_count} objects: {e}")
            return Unavailable(str(e))

        record_usage(total_bytes, object_count)
        logger.info(
            f"Bucket '{self.gateway.bucket_name}': "
            f"{total_bytes / (1024 ** 2):.2f}MB in {object_count} objects"
        )
        return Available(UsageStats(
            total_bytes=total_bytes,
            object_count=object_count,
            largest_object_bytes=largest,
        ))

    def snapshot_today(
        self,
        total_bytes: int,
        file_count: int,
        now: Optional[datetime] = None,
    ) -> UsageSnapshot:
        """
        Upsert the snapshot for the current UTC day; the latest call wins.
        """
        snapshot_date = (now or utcnow()).date()
        upsert = _UPSERT_DIALECTS.get(self.db.get_bind().dialect.name)

        if upsert is not None:
            stmt = upsert(UsageSnapshot).values(
                snapshot_date=snapshot_date,
                total_bytes=total_bytes,
                file_count=file_count,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[UsageSnapshot.snapshot_date],
                set_={
                    "total_bytes": stmt.excluded.total_bytes,
                    "file_count": stmt.excluded.file_count,
                    "updated_at": utcnow(),
                },
            )
            self.db.execute(stmt)
        else:
            snapshot = self.get_snapshot(snapshot_date)
            if snapshot is None:
                self.db.add(UsageSnapshot(
                    snapshot_date=snapshot_date,
                    total_bytes=total_bytes,
                    file_count=file_count,
                ))
            else:
                snapshot.total_bytes = total_bytes
                snapshot.file_count = file_count

        self.db.commit()
        self.db.expire_all()

        logger.info(
            f"Usage snapshot for {snapshot_date}: {total_bytes} bytes, {file_count} files",
            extra={"snapshot_date": snapshot_date, "total_bytes": total_bytes},
        )
        return self.get_snapshot(snapshot_date)

    def get_snapshot(self, snapshot_date: date) -> Optional[UsageSnapshot]:
        return self.db.execute(
            select(UsageSnapshot).where(UsageSnapshot.snapshot_date == snapshot_date)
        ).scalar_one_or_none()

    def get_snapshot_days_ago(self, days: int, now: Optional[datetime] = None) -> Optional[UsageSnapshot]:
        """Snapshot from exactly ``days`` UTC days before today, if recorded."""
        return self.get_snapshot((now or utcnow()).date() - timedelta(days=days))

    def get_growth_series(
        self,
        granularity: str = "day",
        limit: Optional[int] = DEFAULT_GROWTH_LIMIT,
    ) -> List[GrowthPoint]:
        """
        Sum snapshots per period and return the most recent ``limit``
        periods in ascending order.

        Raises:
            ValidationError: For an unknown granularity
        """
        if granularity not in GRANULARITIES:
            raise ValidationError(
                f"granularity must be one of {', '.join(GRANULARITIES)}, got '{granularity}'"
            )
        if limit is None:
            limit = DEFAULT_GROWTH_LIMIT
        limit = max(1, min(int(limit), MAX_GROWTH_LIMIT))

        snapshots = self.db.execute(
            select(UsageSnapshot).order_by(UsageSnapshot.snapshot_date.asc())
        ).scalars()

        buckets: Dict[str, List[int]] = {}
        for snapshot in snapshots:
            totals = buckets.setdefault(period_key(snapshot.snapshot_date, granularity), [0, 0])
            totals[0] += int(snapshot.total_bytes)
            totals[1] += int(snapshot.file_count)

        series = [
            GrowthPoint(period=period, total_bytes=totals[0], file_count=totals[1])
            for period, totals in sorted(buckets.items())
        ]
        return series[-limit:]
