"""
Image Upload Service

Compresses uploads and writes them to the bucket:
- Vehicle photos under ``vehicles/{vehicle_id}/{epoch_ms}-{order}.jpg`` with
  a catalog ImageRecord
- Store logos under ``stores/{tenant_id}/logo.jpg`` / ``logo-dark.jpg``

Compression runs before any write, so a decode or encode failure leaves
neither an object nor a record behind.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vehicle_storage.core.config import Settings
from vehicle_storage.core.exceptions import StoreWriteError
from vehicle_storage.metrics import image_compression_bytes
from vehicle_storage.models import ImageRecord, utcnow
from vehicle_storage.storage.compression import CompressionPipeline
from vehicle_storage.storage.gateway import ObjectStoreGateway

logger = logging.getLogger(__name__)

PUBLIC_IMAGE_PREFIX = "/api/vehicle-images"


def vehicle_image_key(vehicle_id: str, order: int, now: datetime) -> str:
    return f"vehicles/{vehicle_id}/{int(now.timestamp() * 1000)}-{order}.jpg"


def store_logo_key(tenant_id: str, dark: bool = False) -> str:
    return f"stores/{tenant_id}/logo-dark.jpg" if dark else f"stores/{tenant_id}/logo.jpg"


def public_image_url(key: str) -> str:
    """URL served by the read-path proxy, never the bucket itself."""
    return f"{PUBLIC_IMAGE_PREFIX}/{key.lstrip('/')}"


@dataclass(frozen=True)
class UploadedImage:
    key: str
    size_bytes: int
    url: str
    record_id: Optional[str] = None


class ImageUploadService:
    """Compress-then-write uploads for vehicle photos and store logos"""

    def __init__(self, db: Session, gateway: ObjectStoreGateway, settings: Settings):
        self.db = db
        self.gateway = gateway
        self.vehicle_pipeline = CompressionPipeline(
            max_bytes=settings.VEHICLE_IMAGE_MAX_BYTES,
            max_width=settings.VEHICLE_IMAGE_MAX_WIDTH,
            max_height=settings.VEHICLE_IMAGE_MAX_HEIGHT,
        )
        self.logo_pipeline = CompressionPipeline(
            max_bytes=settings.LOGO_MAX_BYTES,
            max_width=settings.LOGO_MAX_SIDE,
            max_height=settings.LOGO_MAX_SIDE,
            initial_quality=85,
            min_quality=70,
            quality_step=15,
        )

    def upload_vehicle_image(
        self,
        vehicle_id: str,
        data: bytes,
        order: int = 0,
        now: Optional[datetime] = None,
    ) -> UploadedImage:
        """
        Compress, store and catalog one vehicle photo.

        If the catalog insert fails after the object was written, the object
        is removed again before the error propagates.

        Raises:
            ImageDecodeError / ImageEncodeError: Before anything is written
            StoreWriteError: If the bucket write fails
        """
        now = now or utcnow()
        compressed = self.vehicle_pipeline.compress(data)
        key = vehicle_image_key(vehicle_id, order, now)

        self.gateway.put(key, compressed.data, compressed.content_type)
        image_compression_bytes.labels(kind="vehicle").observe(compressed.size_bytes)

        record = ImageRecord(
            key=key,
            vehicle_id=vehicle_id,
            size_bytes=compressed.size_bytes,
            display_order=order,
            created_at=now,
        )
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error(f"Catalog insert failed for {key}, removing stored object")
            try:
                self.gateway.delete(key)
            except StoreWriteError as cleanup_error:
                logger.error(f"Could not remove {key} after catalog failure: {cleanup_error}")
            raise

        logger.info(
            f"Uploaded vehicle image {key}",
            extra={"vehicle_id": vehicle_id, "size_bytes": compressed.size_bytes},
        )
        return UploadedImage(
            key=key,
            size_bytes=compressed.size_bytes,
            url=public_image_url(key),
            record_id=record.id,
        )

    def upload_store_logo(self, tenant_id: str, data: bytes, dark: bool = False) -> UploadedImage:
        """
        Compress and store a tenant logo, replacing the previous one.

        Raises:
            ImageDecodeError / ImageEncodeError: Before anything is written
            StoreWriteError: If the bucket write fails
        """
        compressed = self.logo_pipeline.compress(data)
        key = store_logo_key(tenant_id, dark=dark)

        self.gateway.put(key, compressed.data, compressed.content_type)
        image_compression_bytes.labels(kind="logo").observe(compressed.size_bytes)

        logger.info(f"Uploaded store logo {key}", extra={"tenant_id": tenant_id})
        return UploadedImage(key=key, size_bytes=compressed.size_bytes, url=public_image_url(key))
