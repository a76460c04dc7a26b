"""
SQLAlchemy models for the catalog rows the storage engine reads.

Tenants own vehicles, vehicles own image records. All three are soft-deleted
through ``deleted_at``; only ``ImageRecord.deleted_at`` is written here.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    BigInteger,
    ForeignKey,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from vehicle_storage.models.base import Base, new_id


class Tenant(Base):
    """
    Dealership account owning vehicles and images.
    Maps to the 'tenants' table.
    """
    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, default="")

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    vehicles = relationship("Vehicle", back_populates="tenant")

    def __repr__(self):
        return f"<Tenant(id={self.id}, name={self.name})>"


class Vehicle(Base):
    """
    Vehicle listing. Soft-deleting a vehicle makes its images obsolete.
    Maps to the 'vehicles' table.
    """
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    tenant = relationship("Tenant", back_populates="vehicles")
    images = relationship("ImageRecord", back_populates="vehicle")

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<Vehicle(id={self.id}, tenant_id={self.tenant_id})>"


class ImageRecord(Base):
    """
    Catalog row for one stored vehicle photo.

    Every live record should have a matching object in the bucket. Divergence
    is tolerated: size lookups fall back to ``size_bytes`` when the live
    listing lacks the key.
    """
    __tablename__ = "vehicle_images"

    id = Column(String(36), primary_key=True, default=new_id)
    key = Column(String(1024), nullable=False, index=True)
    vehicle_id = Column(String(36), ForeignKey("vehicles.id"), nullable=False, index=True)
    size_bytes = Column(BigInteger, nullable=True)
    display_order = Column(Integer, default=0, nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    vehicle = relationship("Vehicle", back_populates="images")

    def __repr__(self):
        return f"<ImageRecord(id={self.id}, key={self.key}, size_bytes={self.size_bytes})>"
