"""
Unit tests for bucket lifecycle management.
Tests vehicle_storage/storage/lifecycle.py
"""
import pytest
from minio.commonconfig import ENABLED

from vehicle_storage.core.exceptions import StoreWriteError
from vehicle_storage.storage.lifecycle import LifecyclePolicyManager


@pytest.mark.unit
class TestLifecyclePolicyManager:
    """Test lifecycle configuration and deployment."""

    def test_default_policy_is_valid(self, gateway):
        assert LifecyclePolicyManager(gateway).validate_policies() == []

    def test_config_aborts_multipart_uploads(self, gateway):
        config = LifecyclePolicyManager(gateway, abort_multipart_days=3).create_lifecycle_config()

        assert len(config.rules) == 1
        rule = config.rules[0]
        assert rule.rule_id == "abort-incomplete-multipart"
        assert rule.status == ENABLED
        assert rule.abort_incomplete_multipart_upload.days_after_initiation == 3
        assert rule.expiration is None

    def test_status_before_apply(self, gateway):
        status = LifecyclePolicyManager(gateway).status()

        assert status == {
            "bucket": "vehicle-images",
            "policies_configured": 1,
            "policies_deployed": False,
            "rules": [],
        }

    def test_apply_then_status(self, gateway, minio_client):
        manager = LifecyclePolicyManager(gateway, abort_multipart_days=7)

        assert manager.apply()
        assert minio_client.lifecycle is not None

        status = manager.status()
        assert status["policies_deployed"]
        assert status["rules"] == [{
            "id": "abort-incomplete-multipart",
            "status": ENABLED,
            "abort_multipart_days": 7,
            "expiration_days": None,
        }]

    def test_invalid_policy_not_applied(self, gateway, minio_client):
        manager = LifecyclePolicyManager(gateway, abort_multipart_days=0)

        assert manager.validate_policies() == ["Policy 'abort-incomplete-multipart': days must be >= 1"]
        assert manager.apply() is False
        assert minio_client.lifecycle is None

    def test_store_rejects_configuration(self, gateway, minio_client):
        minio_client.down = True

        with pytest.raises(StoreWriteError):
            LifecyclePolicyManager(gateway).apply()

    def test_status_with_store_down(self, gateway, minio_client):
        minio_client.down = True

        assert LifecyclePolicyManager(gateway).status()["policies_deployed"] is False
