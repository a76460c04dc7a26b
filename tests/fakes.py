"""
Test doubles and reference values shared by the test suite.
"""
import threading
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Optional

from minio.error import S3Error
from urllib3.exceptions import ProtocolError


# Reference time for every test that depends on "now" (a Monday)
NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)

BUCKET = "vehicle-images"


def days_ago(days: int) -> datetime:
    return NOW - timedelta(days=days)


class FakeMinioClient:
    """
    In-memory stand-in for ``minio.Minio`` covering the calls the gateway makes.

    Failure injection:
        down: every call raises a transport error
        bucket_missing: bucket_exists() answers False
        fail_keys: remove_object() raises a transport error for these keys
        invalid_keys: remove_object() raises ValueError for these keys, as the
            real client does for a malformed object name
        fail_listing_after: list_objects() breaks after yielding N objects
    """

    def __init__(self):
        self.objects = {}
        self.content_types = {}
        self.policy = None
        self.lifecycle = None
        self.down = False
        self.bucket_missing = False
        self.fail_keys = set()
        self.invalid_keys = set()
        self.fail_listing_after: Optional[int] = None
        self.removed = []
        self._lock = threading.Lock()

    def _check(self):
        if self.down:
            raise ProtocolError("Connection refused")

    def bucket_exists(self, bucket_name):
        self._check()
        return not self.bucket_missing

    def make_bucket(self, bucket_name, location=None):
        self._check()
        self.bucket_missing = False

    def set_bucket_policy(self, bucket_name, policy):
        self._check()
        self.policy = policy

    def put_object(self, bucket_name, object_name, data, length, content_type="application/octet-stream"):
        self._check()
        self.objects[object_name] = data.read(length)
        self.content_types[object_name] = content_type

    def remove_object(self, bucket_name, object_name):
        self._check()
        if object_name in self.fail_keys:
            raise ProtocolError(f"Connection reset while deleting {object_name}")
        if object_name in self.invalid_keys:
            raise ValueError(f"invalid object name {object_name!r}")
        with self._lock:
            self.objects.pop(object_name, None)
            self.removed.append(object_name)

    def list_objects(self, bucket_name, prefix=None, recursive=False):
        self._check()
        for index, (key, data) in enumerate(sorted(self.objects.items())):
            if self.fail_listing_after is not None and index >= self.fail_listing_after:
                raise ProtocolError("Connection broken mid-listing")
            yield SimpleNamespace(object_name=key, size=len(data), is_dir=False)

    def stat_object(self, bucket_name, object_name):
        self._check()
        if object_name not in self.objects:
            raise S3Error("NoSuchKey", "Object does not exist", object_name, "req", "host", None)
        return SimpleNamespace(
            size=len(self.objects[object_name]),
            content_type=self.content_types.get(object_name),
        )

    def get_bucket_lifecycle(self, bucket_name):
        self._check()
        return self.lifecycle

    def set_bucket_lifecycle(self, bucket_name, config):
        self._check()
        self.lifecycle = config

    def add(self, key: str, size: int):
        """Seed an object of ``size`` bytes."""
        self.objects[key] = b"\0" * size

