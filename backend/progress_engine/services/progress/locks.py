"""
Per-Learner Mutation Locks

Serializes progress mutations for the same learner so concurrent requests
(e.g. a topic completion and a quiz submission arriving together) run their
load → mutate → save cycles one after another instead of overwriting each
other. Different learners never contend.

Backends:
- InProcessLearnerLocks: asyncio locks keyed by learner id. Correct for a
  single worker process.
- RedisLearnerLocks: Redis distributed locks, shared by every worker.

Whatever the backend, the repository's optimistic version check still
rejects a stale write, so a lock that expires mid-operation surfaces as a
ConcurrentUpdateError rather than a lost update.

Usage:
    from progress_engine.services.progress.locks import get_lock_manager

    locks = get_lock_manager()
    async with locks.hold(learner_id):
        ...
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Awaitable, Callable, Optional

import redis.asyncio as redis
from redis.exceptions import LockError, RedisError

from progress_engine.config import settings
from progress_engine.db.redis import LOCK_PREFIX, get_redis
from progress_engine.enums.progress import LockBackend
from progress_engine.middleware.error_handling import LockTimeoutError, ProgressStoreError

logger = logging.getLogger(__name__)


class LearnerLockManager(ABC):
    """Hands out a mutual-exclusion scope per learner id."""

    @abstractmethod
    def hold(self, learner_id: str):
        """
        Async context manager holding the learner's lock.

        Raises:
            LockTimeoutError: If the lock is not acquired in time.
        """


class InProcessLearnerLocks(LearnerLockManager):
    """
    asyncio.Lock registry keyed by learner id.

    Locks are created on demand and dropped once no task holds or waits
    for them, so the registry does not grow with the learner base.
    """

    def __init__(self, blocking_timeout: Optional[float] = None):
        """
        Args:
            blocking_timeout: Seconds to wait for the lock; None waits forever.
        """
        self.blocking_timeout = blocking_timeout
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, learner_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(learner_id, asyncio.Lock())
        self._users[learner_id] = self._users.get(learner_id, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.blocking_timeout)
            except asyncio.TimeoutError as e:
                logger.warning(f"Timed out waiting for progress lock of {learner_id}")
                raise LockTimeoutError(
                    "Another update for this learner is in progress",
                    details={"learner_id": learner_id},
                ) from e
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[learner_id] -= 1
            if self._users[learner_id] == 0:
                del self._users[learner_id]
                self._locks.pop(learner_id, None)

    def active_learners(self) -> int:
        """Number of learners with a held or awaited lock."""
        return len(self._locks)


class RedisLearnerLocks(LearnerLockManager):
    """
    Redis distributed locks keyed by learner id.

    The lock auto-expires after `timeout` seconds so a crashed worker
    cannot block a learner forever.
    """

    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[redis.Redis]] = get_redis,
        timeout: float = settings.PROGRESS_LOCK_TIMEOUT_SECONDS,
        blocking_timeout: float = settings.PROGRESS_LOCK_BLOCKING_TIMEOUT_SECONDS,
        prefix: str = LOCK_PREFIX,
    ):
        self.redis_factory = redis_factory
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout
        self.prefix = prefix

    def lock_name(self, learner_id: str) -> str:
        return f"{self.prefix}:{learner_id}"

    @asynccontextmanager
    async def hold(self, learner_id: str) -> AsyncIterator[None]:
        try:
            client = await self.redis_factory()
            lock = client.lock(
                self.lock_name(learner_id),
                timeout=self.timeout,
                blocking_timeout=self.blocking_timeout,
            )
            acquired = await lock.acquire()
        except RedisError as e:
            logger.error(f"Lock store unavailable for {learner_id}: {e}")
            raise ProgressStoreError("Lock store unavailable") from e

        if not acquired:
            logger.warning(f"Timed out waiting for progress lock of {learner_id}")
            raise LockTimeoutError(
                "Another update for this learner is in progress",
                details={"learner_id": learner_id},
            )

        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                logger.warning(
                    f"Progress lock of {learner_id} expired before release; "
                    "the version check guards the write"
                )


@lru_cache()
def get_lock_manager() -> LearnerLockManager:
    """Process-wide lock manager for the configured backend."""
    if settings.PROGRESS_LOCK_BACKEND == LockBackend.REDIS:
        return RedisLearnerLocks()
    return InProcessLearnerLocks(
        blocking_timeout=settings.PROGRESS_LOCK_BLOCKING_TIMEOUT_SECONDS
    )
