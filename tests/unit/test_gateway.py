"""
Unit tests for the object store gateway.
Tests vehicle_storage/storage/gateway.py
"""
import json

import pytest

from vehicle_storage.core.exceptions import StoreWriteError, TransientStoreError
from vehicle_storage.storage.gateway import Available, StoredObject, Unavailable


@pytest.mark.unit
class TestGatewayWrites:
    """Test put and delete."""

    def test_put_then_stat(self, gateway, minio_client):
        stored = gateway.put("vehicles/v1/1-0.jpg", b"jpegdata", "image/jpeg")

        assert stored == StoredObject(key="vehicles/v1/1-0.jpg", size=8, content_type="image/jpeg")
        assert minio_client.objects["vehicles/v1/1-0.jpg"] == b"jpegdata"

        result = gateway.stat("vehicles/v1/1-0.jpg")
        assert isinstance(result, Available)
        assert result.value.size == 8
        assert result.value.content_type == "image/jpeg"

    def test_put_failure_raises(self, gateway, minio_client):
        minio_client.down = True

        with pytest.raises(StoreWriteError):
            gateway.put("vehicles/v1/1-0.jpg", b"x", "image/jpeg")

    def test_delete_existing(self, gateway, minio_client):
        minio_client.add("vehicles/v1/1-0.jpg", 10)

        gateway.delete("vehicles/v1/1-0.jpg")

        assert "vehicles/v1/1-0.jpg" not in minio_client.objects

    def test_delete_missing_key_is_not_an_error(self, gateway):
        gateway.delete("vehicles/nope/1-0.jpg")

    def test_delete_transport_failure(self, gateway, minio_client):
        minio_client.add("vehicles/v1/1-0.jpg", 10)
        minio_client.fail_keys.add("vehicles/v1/1-0.jpg")

        with pytest.raises(StoreWriteError) as exc_info:
            gateway.delete("vehicles/v1/1-0.jpg")

        assert isinstance(exc_info.value, TransientStoreError)


@pytest.mark.unit
class TestGatewayReads:
    """Test listing, stat and availability."""

    def test_list_sizes(self, gateway, minio_client):
        minio_client.add("vehicles/a/1-0.jpg", 100)
        minio_client.add("stores/t/logo.jpg", 50)

        result = gateway.list_sizes()

        assert result == Available({"vehicles/a/1-0.jpg": 100, "stores/t/logo.jpg": 50})
        assert result.available

    def test_list_sizes_bucket_missing(self, gateway, minio_client):
        minio_client.bucket_missing = True

        result = gateway.list_sizes()

        assert isinstance(result, Unavailable)
        assert not result.available

    def test_list_sizes_store_down(self, gateway, minio_client):
        minio_client.down = True

        assert isinstance(gateway.list_sizes(), Unavailable)

    def test_list_sizes_broken_mid_stream(self, gateway, minio_client):
        for index in range(5):
            minio_client.add(f"vehicles/a/{index}-0.jpg", 10)
        minio_client.fail_listing_after = 3

        assert isinstance(gateway.list_sizes(), Unavailable)

    def test_list_all_raises_transient_error(self, gateway, minio_client):
        minio_client.add("vehicles/a/1-0.jpg", 10)
        minio_client.fail_listing_after = 0

        with pytest.raises(TransientStoreError):
            list(gateway.list_all())

    def test_stat_missing_key(self, gateway):
        assert gateway.stat("vehicles/none.jpg") == Available(None)

    def test_stat_store_down(self, gateway, minio_client):
        minio_client.down = True

        assert isinstance(gateway.stat("vehicles/a/1-0.jpg"), Unavailable)

    def test_is_available(self, gateway, minio_client):
        assert gateway.is_available()

        minio_client.down = True
        assert not gateway.is_available()


@pytest.mark.unit
class TestEnsureBucket:
    """Test bucket bootstrap."""

    def test_existing_bucket_untouched(self, gateway, minio_client):
        assert gateway.ensure_bucket()
        assert minio_client.policy is None

    def test_creates_bucket_with_public_read_policy(self, gateway, minio_client):
        minio_client.bucket_missing = True

        assert gateway.ensure_bucket()

        policy = json.loads(minio_client.policy)
        statement = policy["Statement"][0]
        assert statement["Action"] == ["s3:GetObject"]
        assert statement["Resource"] == ["arn:aws:s3:::vehicle-images/*"]

    def test_store_down_does_not_raise(self, gateway, minio_client):
        minio_client.down = True

        assert gateway.ensure_bucket() is False
