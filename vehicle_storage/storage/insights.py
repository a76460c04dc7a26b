"""
Storage insights for the admin dashboard: top consumers, cleanup history
and file quality.
"""
import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from vehicle_storage.models import CleanupLogEntry, ImageRecord, Tenant, Vehicle
from vehicle_storage.storage.gateway import Available, StoreResult, Unavailable
from vehicle_storage.storage.inactivity import resolve_size

logger = logging.getLogger(__name__)

LARGE_IMAGE_BYTES = 2 * 1024 * 1024
OPTIMIZED_IMAGE_BYTES = 300 * 1024
VEHICLE_PREFIX = "vehicles/"


@dataclass(frozen=True)
class TenantConsumption:
    tenant_id: str
    tenant_name: str
    file_count: int
    bytes: int


@dataclass(frozen=True)
class FileQuality:
    total_images: int
    percent_over_2mb: float
    percent_not_optimized: float
    savings_suggestion_percent: int

    @property
    def message(self) -> Optional[str]:
        if self.savings_suggestion_percent > 0:
            return (
                f"You could save about {self.savings_suggestion_percent}% "
                f"by compressing images above 300 KB."
            )
        if self.total_images > 0:
            return "No significant savings suggested."
        return None


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


class StorageInsights:
    def __init__(self, db: Session):
        self.db = db

    def top_consumers(self, listing: StoreResult[Mapping[str, int]], limit: int = 50) -> List[TenantConsumption]:
        """Tenants ranked by bytes held in live image records."""
        live_sizes = listing.value if isinstance(listing, Available) else {}
        rows = self.db.execute(
            select(ImageRecord, Tenant.id, Tenant.name)
            .join(Vehicle, ImageRecord.vehicle_id == Vehicle.id)
            .join(Tenant, Vehicle.tenant_id == Tenant.id)
            .where(ImageRecord.deleted_at.is_(None))
        ).all()

        totals = {}
        for image, tenant_id, tenant_name in rows:
            name, count, size = totals.get(tenant_id, (tenant_name, 0, 0))
            totals[tenant_id] = (name, count + 1, size + resolve_size(image, live_sizes))

        ranked = sorted(
            (
                TenantConsumption(tenant_id=tid, tenant_name=name, file_count=count, bytes=size)
                for tid, (name, count, size) in totals.items()
            ),
            key=lambda c: c.bytes,
            reverse=True,
        )
        return ranked[:limit]

    def cleanup_history(self, limit: int = 50) -> List[CleanupLogEntry]:
        """Most recent cleanup runs, newest first (limit clamped to 1..100)."""
        limit = max(1, min(int(limit or 50), 100))
        return list(self.db.execute(
            select(CleanupLogEntry).order_by(CleanupLogEntry.cleaned_at.desc()).limit(limit)
        ).scalars())

    def file_quality(self, listing: StoreResult[Mapping[str, int]]) -> StoreResult[FileQuality]:
        """Share of oversized and unoptimized vehicle photos in the bucket."""
        if not isinstance(listing, Available):
            return Unavailable(listing.reason)

        sizes = [size for key, size in listing.value.items() if key.startswith(VEHICLE_PREFIX)]
        total = len(sizes)
        total_bytes = sum(sizes)
        over_2mb = sum(1 for size in sizes if size >= LARGE_IMAGE_BYTES)
        unoptimized = [size for size in sizes if size > OPTIMIZED_IMAGE_BYTES]

        return Available(FileQuality(
            total_images=total,
            percent_over_2mb=_percent(over_2mb, total),
            percent_not_optimized=_percent(len(unoptimized), total),
            savings_suggestion_percent=round(sum(unoptimized) / total_bytes * 100) if total_bytes else 0,
        ))
