"""
Unit tests for per-learner locks.

Tests the asyncio lock registry and the Redis lock backend (mocked).
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import LockError

from progress_engine.middleware.error_handling import LockTimeoutError, ProgressStoreError
from progress_engine.services.progress.locks import (
    InProcessLearnerLocks,
    RedisLearnerLocks,
)


class TestInProcessLearnerLocks:
    """Tests for InProcessLearnerLocks."""

    @pytest.mark.asyncio
    async def test_serializes_same_learner(self):
        locks = InProcessLearnerLocks()
        events = []

        async def work(name: str):
            async with locks.hold("learner-1"):
                events.append(f"{name}-start")
                await asyncio.sleep(0.01)
                events.append(f"{name}-end")

        await asyncio.gather(work("a"), work("b"))

        assert events == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_different_learners_do_not_contend(self):
        locks = InProcessLearnerLocks()
        inside = asyncio.Event()

        async def holder():
            async with locks.hold("learner-1"):
                await inside.wait()

        task = asyncio.create_task(holder())
        await asyncio.sleep(0)

        async with locks.hold("learner-2"):
            inside.set()

        await task

    @pytest.mark.asyncio
    async def test_registry_is_cleaned_up(self):
        locks = InProcessLearnerLocks()

        async with locks.hold("learner-1"):
            assert locks.active_learners() == 1

        assert locks.active_learners() == 0

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        locks = InProcessLearnerLocks()

        with pytest.raises(RuntimeError):
            async with locks.hold("learner-1"):
                raise RuntimeError("boom")

        async with locks.hold("learner-1"):
            pass
        assert locks.active_learners() == 0

    @pytest.mark.asyncio
    async def test_blocking_timeout_raises(self):
        locks = InProcessLearnerLocks(blocking_timeout=0.01)
        release = asyncio.Event()

        async def holder():
            async with locks.hold("learner-1"):
                await release.wait()

        task = asyncio.create_task(holder())
        await asyncio.sleep(0)

        with pytest.raises(LockTimeoutError):
            async with locks.hold("learner-1"):
                pass

        release.set()
        await task
        assert locks.active_learners() == 0


class TestRedisLearnerLocks:
    """Tests for RedisLearnerLocks with a mocked client."""

    @staticmethod
    def _locks(mock_redis) -> RedisLearnerLocks:
        return RedisLearnerLocks(
            redis_factory=AsyncMock(return_value=mock_redis),
            timeout=10,
            blocking_timeout=1,
            prefix="test:lock",
        )

    @pytest.mark.asyncio
    async def test_acquires_and_releases(self, mock_redis):
        locks = self._locks(mock_redis)

        async with locks.hold("learner-1"):
            pass

        mock_redis.lock.assert_called_once_with(
            "test:lock:learner-1", timeout=10, blocking_timeout=1
        )
        lock = mock_redis.lock.return_value
        lock.acquire.assert_awaited_once()
        lock.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_not_acquired_raises_timeout(self, mock_redis):
        mock_redis.lock.return_value.acquire = AsyncMock(return_value=False)
        locks = self._locks(mock_redis)

        with pytest.raises(LockTimeoutError):
            async with locks.hold("learner-1"):
                pass

        mock_redis.lock.return_value.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_down_raises_store_error(self, mock_redis):
        mock_redis.lock.return_value.acquire = AsyncMock(
            side_effect=RedisConnectionError("refused")
        )
        locks = self._locks(mock_redis)

        with pytest.raises(ProgressStoreError):
            async with locks.hold("learner-1"):
                pass

    @pytest.mark.asyncio
    async def test_expired_lock_on_release_is_tolerated(self, mock_redis):
        mock_redis.lock.return_value.release = AsyncMock(side_effect=LockError("expired"))
        locks = self._locks(mock_redis)
        body = MagicMock()

        async with locks.hold("learner-1"):
            body()

        body.assert_called_once()
