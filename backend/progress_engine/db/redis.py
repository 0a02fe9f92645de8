"""
Redis Connection

Provides the shared Redis connection pool used for distributed
per-learner locks (PROGRESS_LOCK_BACKEND=redis).

Usage:
    from progress_engine.db.redis import get_redis

    redis = await get_redis()
    async with redis.lock("progress:lock:learner-1", timeout=10):
        ...
"""

from typing import Any, Optional

import redis.asyncio as redis

from progress_engine.config import settings, yaml_config


# Get Redis configuration from yaml config
redis_config: dict[str, Any] = yaml_config.get("redis", {})
MAX_CONNECTIONS: int = redis_config.get("max_connections", 10)
LOCK_PREFIX: str = redis_config.get("lock_prefix", "progress:lock")


# Connection pool (lazily initialized)
_redis_pool: Optional[redis.ConnectionPool] = None


async def get_redis_pool() -> redis.ConnectionPool:
    """Get or create the Redis connection pool."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            max_connections=MAX_CONNECTIONS,
        )
    return _redis_pool


async def get_redis() -> redis.Redis:
    """
    Get a Redis connection from the pool.

    Usage:
        redis = await get_redis()
        await redis.ping()
    """
    pool = await get_redis_pool()
    return redis.Redis(connection_pool=pool)


async def close_redis_pool() -> None:
    """Close the Redis connection pool."""
    global _redis_pool
    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None
