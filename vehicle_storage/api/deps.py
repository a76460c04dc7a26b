"""
FastAPI dependencies for the storage endpoints.

The gateway and lock manager are process-wide; tests replace them through
``app.dependency_overrides``.
"""
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from vehicle_storage.core.config import settings
from vehicle_storage.core.locks import LockManager, get_default_lock_manager
from vehicle_storage.core.minio_client import get_minio_client
from vehicle_storage.db import get_db
from vehicle_storage.services import StorageAdminService
from vehicle_storage.storage.gateway import ObjectStoreGateway


@lru_cache()
def get_gateway() -> ObjectStoreGateway:
    return ObjectStoreGateway(get_minio_client(settings), settings.MINIO_BUCKET)


def get_lock_manager() -> LockManager:
    return get_default_lock_manager()


def get_storage_service(
    db: Session = Depends(get_db),
    gateway: ObjectStoreGateway = Depends(get_gateway),
    lock_manager: LockManager = Depends(get_lock_manager),
) -> StorageAdminService:
    return StorageAdminService(db, gateway, lock_manager=lock_manager, settings=settings)


def get_triggering_user(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Id of the admin issuing the request; authentication happens upstream."""
    return x_user_id
