"""
Pytest configuration and shared fixtures for Vehicle Storage tests.
"""
import itertools
import os
from datetime import datetime
from typing import Generator, Optional

# Settings are read at import time; keep the app off the production database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from vehicle_storage.api.deps import get_gateway, get_lock_manager
from vehicle_storage.core.locks import InProcessLockManager
from vehicle_storage.db import get_db
from vehicle_storage.models import Base, ImageRecord, Tenant, Vehicle
from vehicle_storage.storage.gateway import ObjectStoreGateway

from tests.fakes import BUCKET, NOW, FakeMinioClient

# Test Database Configuration
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db_session = TestingSessionLocal()
    try:
        yield db_session
    finally:
        db_session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def minio_client() -> FakeMinioClient:
    return FakeMinioClient()


@pytest.fixture
def gateway(minio_client: FakeMinioClient) -> ObjectStoreGateway:
    return ObjectStoreGateway(minio_client, BUCKET)


@pytest.fixture
def lock_manager() -> InProcessLockManager:
    return InProcessLockManager()


@pytest.fixture
def make_tenant(db: Session):
    """Factory for tenants with a given last update."""
    def _make(updated_at: datetime = NOW, name: str = "Dealer", deleted_at: Optional[datetime] = None) -> Tenant:
        tenant = Tenant(name=name, updated_at=updated_at, deleted_at=deleted_at)
        db.add(tenant)
        db.commit()
        return tenant
    return _make


@pytest.fixture
def make_vehicle(db: Session):
    def _make(tenant: Tenant, updated_at: Optional[datetime] = None, deleted_at: Optional[datetime] = None) -> Vehicle:
        vehicle = Vehicle(
            tenant_id=tenant.id,
            updated_at=updated_at or tenant.updated_at,
            deleted_at=deleted_at,
        )
        db.add(vehicle)
        db.commit()
        return vehicle
    return _make


@pytest.fixture
def make_image(db: Session, minio_client: FakeMinioClient):
    """Factory for image records, optionally backed by an object in the fake bucket."""
    sequence = itertools.count()

    def _make(
        vehicle: Vehicle,
        size_bytes: Optional[int] = 1000,
        key: Optional[str] = None,
        stored_size: Optional[int] = None,
        in_bucket: bool = True,
    ) -> ImageRecord:
        image = ImageRecord(
            key=key or f"vehicles/{vehicle.id}/{next(sequence)}-0.jpg",
            vehicle_id=vehicle.id,
            size_bytes=size_bytes,
            created_at=NOW,
        )
        db.add(image)
        db.commit()
        if in_bucket:
            minio_client.add(image.key, stored_size if stored_size is not None else (size_bytes or 0))
        return image
    return _make


@pytest.fixture(scope="function")
def client(db: Session, gateway: ObjectStoreGateway, lock_manager, monkeypatch) -> Generator[TestClient, None, None]:
    """Create a test client wired to the test database and fake bucket."""
    from vehicle_storage import main

    def override_get_db():
        try:
            yield db
        finally:
            pass

    # The lifespan hook calls get_gateway() directly, outside dependency injection
    monkeypatch.setattr(main, "get_gateway", lambda: gateway)

    main.app.dependency_overrides[get_db] = override_get_db
    main.app.dependency_overrides[get_gateway] = lambda: gateway
    main.app.dependency_overrides[get_lock_manager] = lambda: lock_manager

    with TestClient(main.app) as test_client:
        yield test_client

    main.app.dependency_overrides.clear()
