"""
Advisory locks for cleanup runs.

Two cleanup invocations for the same trigger family must not work on an
overlapping target set. Locks are acquired without blocking; a held lock
raises CleanupInProgressError before the caller touches anything.
"""
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from functools import lru_cache
from typing import ContextManager, Dict, Iterator, Optional

import redis
from redis.exceptions import LockError

from vehicle_storage.core.config import Settings, settings as default_settings
from vehicle_storage.core.exceptions import CleanupInProgressError

logger = logging.getLogger(__name__)


class LockManager(ABC):
    """Interface for named, non-blocking advisory locks"""

    @abstractmethod
    def hold(self, name: str) -> ContextManager[None]:
        """Hold the lock called `name` for the duration of a with-block."""


class InProcessLockManager(LockManager):
    """
    Lock manager backed by threading locks.

    Only serializes callers inside one process; use RedisLockManager when
    several API workers share the catalog.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, name: str) -> threading.Lock:
        with self._guard:
            if name not in self._locks:
                self._locks[name] = threading.Lock()
            return self._locks[name]

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        lock = self._lock_for(name)
        if not lock.acquire(blocking=False):
            logger.warning(f"Lock '{name}' is already held")
            raise CleanupInProgressError(name)
        try:
            yield
        finally:
            lock.release()


class RedisLockManager(LockManager):
    """
    Lock manager backed by redis-py locks.

    The TTL bounds how long a crashed holder can block the next run.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        ttl_seconds: int = 900,
        prefix: str = "vehicle_storage:lock:"
    ):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    @contextmanager
    def hold(self, name: str) -> Iterator[None]:
        lock = self.redis.lock(f"{self.prefix}{name}", timeout=self.ttl_seconds)
        if not lock.acquire(blocking=False):
            logger.warning(f"Redis lock '{name}' is already held")
            raise CleanupInProgressError(name)
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError as e:
                # TTL expired while the run was still going
                logger.warning(f"Redis lock '{name}' was lost before release: {e}")


def build_lock_manager(settings: Settings, redis_client: Optional[redis.Redis] = None) -> LockManager:
    """
    Pick the lock backend from configuration.

    Args:
        settings: Application settings
        redis_client: Optional pre-built Redis client

    Returns:
        RedisLockManager when Redis is configured, InProcessLockManager otherwise
    """
    if redis_client is None and settings.REDIS_URL:
        redis_client = redis.Redis.from_url(settings.REDIS_URL)

    if redis_client is not None:
        logger.info("Using Redis advisory locks for cleanup runs")
        return RedisLockManager(redis_client, ttl_seconds=settings.GC_LOCK_TTL_SECONDS)

    logger.info("Using in-process advisory locks for cleanup runs")
    return InProcessLockManager()


@lru_cache()
def get_default_lock_manager() -> LockManager:
    """
    Process-wide lock manager built from the application settings.

    Every collector created without an explicit manager shares this one, so
    the HTTP layer and scheduled runs exclude each other.
    """
    return build_lock_manager(default_settings)
