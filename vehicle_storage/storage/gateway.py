"""
Object Store Gateway

Thin wrapper around the MinIO client that gives the rest of the engine one
contract for the S3-compatible backend:

- Writes (put/delete/set_lifecycle) raise StoreWriteError on failure
- Reads (list/stat/probe) never raise for availability reasons; they return
  ``Unavailable`` so dashboards degrade instead of failing
- ``list_all`` streams objects lazily and cannot be resumed mid-stream
"""
import io
import json
import logging
from dataclasses import dataclass
from typing import Dict, Generic, Iterator, Optional, TypeVar, Union

from minio import Minio
from minio.error import MinioException, S3Error
from minio.lifecycleconfig import LifecycleConfig
from urllib3.exceptions import HTTPError

from vehicle_storage.core.exceptions import StoreWriteError, TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Anything the MinIO client can raise for a failed round-trip
STORE_ERRORS = (MinioException, HTTPError, OSError)

MISSING_KEY_CODES = {"NoSuchKey", "NoSuchObject"}


@dataclass(frozen=True)
class StoredObject:
    """Object as seen in the bucket"""
    key: str
    size: int
    content_type: Optional[str] = None


@dataclass(frozen=True)
class Available(Generic[T]):
    """Read result when the store answered"""
    value: T

    @property
    def available(self) -> bool:
        return True


@dataclass(frozen=True)
class Unavailable:
    """Read result when the bucket is missing or unreachable"""
    reason: str = ""

    @property
    def available(self) -> bool:
        return False


StoreResult = Union[Available[T], Unavailable]


class ObjectStoreGateway:
    """
    Gateway over one bucket of an S3-compatible store.

    Constructed explicitly and passed to the accountant, collector and upload
    service, so tests can hand in a fake client.
    """

    def __init__(self, minio_client: Minio, bucket_name: str):
        """
        Args:
            minio_client: MinIO client instance
            bucket_name: Target bucket name
        """
        self.client = minio_client
        self.bucket_name = bucket_name

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def put(self, key: str, data: bytes, content_type: str) -> StoredObject:
        """
        Write an object, overwriting any existing one under the same key.

        Raises:
            StoreWriteError: On transport or auth failure
        """
        try:
            self.client.put_object(
                bucket_name=self.bucket_name,
                object_name=key,
                data=io.BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
        except STORE_ERRORS as e:
            logger.error(f"Failed to put {key}: {e}", extra={"key": key})
            raise StoreWriteError(f"Failed to put {key}: {e}") from e

        logger.debug(f"Stored {key} ({len(data)} bytes)")
        return StoredObject(key=key, size=len(data), content_type=content_type)

    def delete(self, key: str) -> None:
        """
        Delete an object. Deleting a missing key is not an error.

        Raises:
            StoreWriteError: On transport or auth failure
        """
        try:
            self.client.remove_object(bucket_name=self.bucket_name, object_name=key)
        except S3Error as e:
            if e.code in MISSING_KEY_CODES:
                return
            raise StoreWriteError(f"Failed to delete {key}: {e}") from e
        except STORE_ERRORS as e:
            raise StoreWriteError(f"Failed to delete {key}: {e}") from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def is_available(self) -> bool:
        """True when the bucket exists and the store answers."""
        try:
            return bool(self.client.bucket_exists(bucket_name=self.bucket_name))
        except STORE_ERRORS as e:
            logger.warning(f"Bucket '{self.bucket_name}' unreachable: {e}")
            return False

    def list_all(self) -> Iterator[StoredObject]:
        """
        Stream every object in the bucket as (key, size).

        The listing is consumed lazily. A stream that fails part-way cannot
        be resumed; callers restart from the beginning.

        Raises:
            TransientStoreError: If the listing fails
        """
        try:
            for obj in self.client.list_objects(bucket_name=self.bucket_name, recursive=True):
                if obj.is_dir or not obj.object_name:
                    continue
                yield StoredObject(key=obj.object_name, size=obj.size or 0)
        except STORE_ERRORS as e:
            raise TransientStoreError(f"Listing of '{self.bucket_name}' failed: {e}") from e

    def list_sizes(self) -> StoreResult[Dict[str, int]]:
        """
        Build a key -> size map of the whole bucket.

        Returns:
            Available(map) or Unavailable when the bucket is missing, unreachable
            or the listing breaks part-way
        """
        if not self.is_available():
            return Unavailable(f"bucket '{self.bucket_name}' unavailable")

        try:
            return Available({obj.key: obj.size for obj in self.list_all()})
        except TransientStoreError as e:
            logger.warning(f"Key listing degraded to unavailable: {e}")
            return Unavailable(str(e))

    def stat(self, key: str) -> StoreResult[Optional[StoredObject]]:
        """
        Look up a single object.

        Returns:
            Available(StoredObject), Available(None) when the key does not
            exist, or Unavailable when the store cannot be reached
        """
        try:
            obj = self.client.stat_object(bucket_name=self.bucket_name, object_name=key)
        except S3Error as e:
            if e.code in MISSING_KEY_CODES:
                return Available(None)
            logger.warning(f"stat {key} failed: {e}")
            return Unavailable(str(e))
        except STORE_ERRORS as e:
            logger.warning(f"stat {key} failed: {e}")
            return Unavailable(str(e))

        return Available(StoredObject(key=key, size=obj.size or 0, content_type=obj.content_type))

    # ------------------------------------------------------------------
    # Bucket administration
    # ------------------------------------------------------------------

    def public_read_policy(self) -> Dict:
        """Bucket policy allowing anonymous GetObject."""
        return {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"AWS": ["*"]},
                    "Action": ["s3:GetObject"],
                    "Resource": [f"arn:aws:s3:::{self.bucket_name}/*"],
                }
            ],
        }

    def ensure_bucket(self, location: str = "us-east-1") -> bool:
        """
        Create the bucket with a public-read policy if it does not exist.

        Never raises: the service must start even when the store is down.

        Returns:
            True if the bucket exists or was created, False otherwise
        """
        try:
            if self.client.bucket_exists(bucket_name=self.bucket_name):
                return True

            self.client.make_bucket(bucket_name=self.bucket_name, location=location)
            self.client.set_bucket_policy(
                bucket_name=self.bucket_name,
                policy=json.dumps(self.public_read_policy()),
            )
            logger.info(f"Created bucket '{self.bucket_name}' with public-read policy")
            return True

        except STORE_ERRORS as e:
            logger.warning(
                f"Storage unavailable, uploads will fail until it is running: {e}"
            )
            return False

    def get_lifecycle(self) -> Optional[LifecycleConfig]:
        """Current lifecycle configuration, or None if absent or unreadable."""
        try:
            return self.client.get_bucket_lifecycle(bucket_name=self.bucket_name)
        except STORE_ERRORS as e:
            logger.warning(f"Failed to get lifecycle of '{self.bucket_name}': {e}")
            return None

    def set_lifecycle(self, config: LifecycleConfig) -> None:
        """
        Replace the bucket lifecycle configuration.

        Raises:
            StoreWriteError: On transport or auth failure
        """
        try:
            self.client.set_bucket_lifecycle(bucket_name=self.bucket_name, config=config)
        except STORE_ERRORS as e:
            raise StoreWriteError(f"Failed to set lifecycle of '{self.bucket_name}': {e}") from e
