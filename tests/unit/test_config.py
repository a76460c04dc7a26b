"""
Unit tests for settings and structured logging.
Tests vehicle_storage/core/config.py, vehicle_storage/core/logging.py and vehicle_storage/db/session.py
"""
import json
import logging
import sys
from datetime import date

import pytest
from pydantic import ValidationError as SettingsError

from vehicle_storage.core.config import Settings
from vehicle_storage.core.logging import JSONFormatter
from vehicle_storage.db import check_db_connection, init_db


@pytest.mark.unit
class TestSettings:
    """Test Settings validation."""

    def test_defaults(self):
        settings = Settings(STORAGE_TOTAL_MB=None)

        assert settings.MINIO_BUCKET == "vehicle-images"
        assert settings.GC_DELETE_WORKERS == 16
        assert settings.storage_limit_bytes is None

    @pytest.mark.parametrize("value", ["", "0", "-5", 0])
    def test_non_positive_limit_means_unknown(self, value):
        assert Settings(STORAGE_TOTAL_MB=value).storage_limit_bytes is None

    def test_limit_in_bytes(self):
        assert Settings(STORAGE_TOTAL_MB="1.5").storage_limit_bytes == 1572864

    def test_limit_from_environment(self, monkeypatch):
        monkeypatch.setenv("STORAGE_TOTAL_MB", "2")

        assert Settings().storage_limit_bytes == 2 * 1024 * 1024

    def test_rejects_unsupported_database(self):
        with pytest.raises(SettingsError):
            Settings(DATABASE_URL="mysql://user@localhost/db")

    def test_rejects_unknown_log_format(self):
        with pytest.raises(SettingsError):
            Settings(LOG_FORMAT="xml")

    def test_delete_workers_bounded(self):
        with pytest.raises(SettingsError):
            Settings(GC_DELETE_WORKERS=0)


@pytest.mark.unit
class TestJSONFormatter:
    """Test log record rendering."""

    def make_record(self, **extra) -> logging.LogRecord:
        record = logging.LogRecord(
            name="vehicle_storage.storage.cleanup",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Cleanup completed: %s",
            args=("zombie_360",),
            exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_core_fields(self):
        entry = json.loads(JSONFormatter().format(self.make_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "vehicle_storage.storage.cleanup"
        assert entry["message"] == "Cleanup completed: zombie_360"
        assert "timestamp" in entry

    def test_extra_fields(self):
        record = self.make_record(trigger_type="zombie_360", files_removed=3, snapshot_date=date(2026, 6, 1))

        entry = json.loads(JSONFormatter().format(record))

        assert entry["trigger_type"] == "zombie_360"
        assert entry["files_removed"] == 3
        assert entry["snapshot_date"] == "2026-06-01"

    def test_exception_info(self):
        try:
            raise RuntimeError("store down")
        except RuntimeError:
            record = self.make_record()
            record.exc_info = sys.exc_info()

        entry = json.loads(JSONFormatter().format(record))

        assert entry["exception"]["type"] == "RuntimeError"
        assert entry["exception"]["message"] == "store down"


@pytest.mark.unit
class TestDatabaseHelpers:
    def test_init_and_check(self):
        init_db()

        assert check_db_connection()
