"""
SQLAlchemy models owned by the storage engine: daily usage snapshots and
the cleanup audit trail.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Date,
    DateTime,
    BigInteger,
    JSON,
)
from sqlalchemy.sql import func

from vehicle_storage.models.base import Base, new_id


class UsageSnapshot(Base):
    """
    One usage data point per UTC day.
    Upserted, never appended: ``snapshot_date`` is unique.
    """
    __tablename__ = "storage_snapshots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    snapshot_date = Column(Date, unique=True, nullable=False, index=True)
    total_bytes = Column(BigInteger, nullable=False, default=0)
    file_count = Column(Integer, nullable=False, default=0)

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self):
        return (
            f"<UsageSnapshot(date={self.snapshot_date}, "
            f"total_bytes={self.total_bytes}, file_count={self.file_count})>"
        )


class CleanupLogEntry(Base):
    """
    Append-only audit row written once per cleanup run that had targets.

    ``bytes_freed`` is the catalog-recorded size of every target, whatever
    the per-object delete outcome was.
    """
    __tablename__ = "storage_cleanup_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    cleaned_at = Column(DateTime(timezone=True), nullable=False, index=True)
    files_removed = Column(Integer, nullable=False, default=0)
    files_failed = Column(Integer, nullable=False, default=0)
    bytes_freed = Column(BigInteger, nullable=False, default=0)
    trigger_type = Column(String(32), nullable=False, index=True)  # zombie_90 | zombie_180 | zombie_360 | obsolete
    trigger_user_id = Column(String(36), nullable=True)
    affected_ids = Column(JSON, nullable=False, default=list)

    def __repr__(self):
        return (
            f"<CleanupLogEntry(id={self.id}, trigger_type={self.trigger_type}, "
            f"files_removed={self.files_removed})>"
        )
