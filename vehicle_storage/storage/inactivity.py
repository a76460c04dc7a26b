"""
Tenant Inactivity Classification

A tenant's last activity is the latest of its own ``updated_at`` and the
``updated_at`` of its live vehicles. Tenants are tiered by the largest
threshold (90, 180 or 360 days) their last activity falls behind, so the
inactive sets nest: inactive-360 is a subset of inactive-180, which is a
subset of inactive-90.

Images of inactive tenants ("zombie files") are what the inactivity
cleanup reclaims.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Mapping, Optional, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from vehicle_storage.core.exceptions import ValidationError
from vehicle_storage.models import ImageRecord, Tenant, Vehicle, as_utc, utcnow
from vehicle_storage.storage.gateway import Available, StoreResult

logger = logging.getLogger(__name__)

TIERS = (90, 180, 360)


def validate_tier(tier) -> int:
    """
    Raises:
        ValidationError: Unless tier is one of 90, 180, 360
    """
    if isinstance(tier, bool) or tier not in TIERS:
        raise ValidationError(f"days must be 90, 180 or 360, got {tier!r}")
    return int(tier)


def tier_for(last_activity: datetime, now: datetime) -> Optional[int]:
    """
    Largest tier T with last_activity < now - T days, or None.
    """
    last_activity = as_utc(last_activity)
    for tier in sorted(TIERS, reverse=True):
        if last_activity < now - timedelta(days=tier):
            return tier
    return None


@dataclass(frozen=True)
class ZombieTier:
    count: int
    bytes: int


@dataclass
class ZombieReport:
    tiers: Dict[int, ZombieTier] = field(default_factory=dict)
    sizes_from_listing: bool = False  # False when only catalog sizes were used

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {
            f"zombie{tier}": {"count": entry.count, "bytes": entry.bytes}
            for tier, entry in sorted(self.tiers.items())
        }


class InactivityClassifier:
    """
    Activity computation and tiering over the catalog.

    Soft-deleted tenants are not classified; soft-deleted vehicles neither
    count as activity nor carry zombie images (they are obsolete instead).
    """

    def __init__(self, db: Session):
        self.db = db

    def activity_by_tenant(self) -> Dict[str, datetime]:
        """Last activity per live tenant."""
        tenants = self.db.execute(
            select(Tenant.id, Tenant.updated_at).where(Tenant.deleted_at.is_(None))
        ).all()
        vehicles = self.db.execute(
            select(Vehicle.tenant_id, Vehicle.updated_at).where(Vehicle.deleted_at.is_(None))
        ).all()

        latest_vehicle: Dict[str, datetime] = {}
        for tenant_id, updated_at in vehicles:
            updated_at = as_utc(updated_at)
            current = latest_vehicle.get(tenant_id)
            if current is None or updated_at > current:
                latest_vehicle[tenant_id] = updated_at

        activity: Dict[str, datetime] = {}
        for tenant_id, updated_at in tenants:
            updated_at = as_utc(updated_at)
            vehicle_activity = latest_vehicle.get(tenant_id)
            if vehicle_activity is not None and vehicle_activity > updated_at:
                activity[tenant_id] = vehicle_activity
            else:
                activity[tenant_id] = updated_at
        return activity

    def last_activity(self, tenant_id: str) -> Optional[datetime]:
        """Last activity of one tenant, None if unknown or soft-deleted."""
        return self.activity_by_tenant().get(tenant_id)

    def classify(self, tenant_id: str, now: Optional[datetime] = None) -> Optional[int]:
        """Tier of one tenant (90, 180, 360) or None when active."""
        last = self.last_activity(tenant_id)
        if last is None:
            return None
        return tier_for(last, now or utcnow())

    def inactive_tenant_ids(self, tier: int, now: Optional[datetime] = None) -> Set[str]:
        """
        Tenants inactive for more than ``tier`` days.

        Raises:
            ValidationError: For a tier outside 90/180/360
        """
        tier = validate_tier(tier)
        cutoff = (now or utcnow()) - timedelta(days=tier)
        return {
            tenant_id
            for tenant_id, last in self.activity_by_tenant().items()
            if last < cutoff
        }

    def zombie_images(self, tenant_ids: Set[str]) -> List[ImageRecord]:
        """Live images on live vehicles owned by the given tenants."""
        if not tenant_ids:
            return []
        return list(self.db.execute(
            select(ImageRecord)
            .join(Vehicle, ImageRecord.vehicle_id == Vehicle.id)
            .where(
                ImageRecord.deleted_at.is_(None),
                Vehicle.deleted_at.is_(None),
                Vehicle.tenant_id.in_(tenant_ids),
            )
            .order_by(ImageRecord.id)
        ).scalars())

    def zombie_report(
        self,
        listing: StoreResult[Mapping[str, int]],
        now: Optional[datetime] = None,
    ) -> ZombieReport:
        """
        Count and size of zombie images per tier.

        Sizes come from the live listing when it is available and holds the
        key, otherwise from the catalog's ``size_bytes``.
        """
        now = now or utcnow()
        activity = self.activity_by_tenant()
        live_sizes: Mapping[str, int] = listing.value if isinstance(listing, Available) else {}

        images = self.zombie_images(set(activity))
        owner_by_vehicle = dict(self.db.execute(
            select(Vehicle.id, Vehicle.tenant_id).where(Vehicle.deleted_at.is_(None))
        ).all())

        report = ZombieReport(sizes_from_listing=isinstance(listing, Available))
        for tier in TIERS:
            cutoff = now - timedelta(days=tier)
            count = 0
            total = 0
            for image in images:
                if activity[owner_by_vehicle[image.vehicle_id]] < cutoff:
                    count += 1
                    total += resolve_size(image, live_sizes)
            report.tiers[tier] = ZombieTier(count=count, bytes=total)

        logger.info(
            "Zombie report computed",
            extra={f"zombie_{tier}": entry.count for tier, entry in report.tiers.items()},
        )
        return report


def resolve_size(image: ImageRecord, live_sizes: Mapping[str, int]) -> int:
    """Live object size, falling back to the catalog value."""
    size = live_sizes.get(image.key)
    if size is None:
        size = image.size_bytes
    return int(size or 0)
