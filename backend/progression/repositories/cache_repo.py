"""
Cache repository for Redis operations.

Caching is an optimization only: every Redis failure is logged and the
caller falls back to recomputing.
"""
import json
from datetime import timedelta
from typing import Any, Awaitable, Callable, TypeVar

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = structlog.get_logger()

T = TypeVar("T")


class CacheRepository:
    """
    JSON values in Redis with a TTL.

    Keys are namespaced under ``cache:``.
    """

    def __init__(self, redis: Redis, default_ttl: timedelta = timedelta(seconds=30)):
        self.redis = redis
        self.default_ttl = default_ttl

    def _key(self, *parts: Any) -> str:
        return "cache:" + ":".join(str(p) for p in parts)

    async def get(self, *key_parts: Any) -> Any | None:
        """Cached value, or None on a miss or any cache failure."""
        key = self._key(*key_parts)
        try:
            data = await self.redis.get(key)
            if data:
                return json.loads(data)
            return None
        except RedisError as e:
            logger.warning("Cache get failed", key=key, error=str(e))
            return None
        except (TypeError, json.JSONDecodeError) as e:
            logger.warning("Cache decode failed", key=key, error=str(e))
            return None

    async def set(self, *key_parts: Any, value: Any, ttl: timedelta | None = None) -> bool:
        """
        Store ``value`` (JSON serialized) under the key.

        Returns:
            True if stored, False otherwise
        """
        key = self._key(*key_parts)
        try:
            ttl_seconds = int((ttl or self.default_ttl).total_seconds())
            await self.redis.setex(key, ttl_seconds, json.dumps(value, default=str))
            return True
        except RedisError as e:
            logger.warning("Cache set failed", key=key, error=str(e))
            return False
        except (TypeError, ValueError) as e:
            logger.warning("Cache serialize failed", key=key, error=str(e))
            return False

    async def delete(self, *key_parts: Any) -> bool:
        key = self._key(*key_parts)
        try:
            return await self.redis.delete(key) > 0
        except RedisError as e:
            logger.warning("Cache delete failed", key=key, error=str(e))
            return False

    async def get_or_compute(
        self,
        key_parts: tuple[Any, ...],
        compute_fn: Callable[[], Awaitable[T]],
        ttl: timedelta | None = None,
    ) -> T:
        """
        Return the cached value, or compute, cache and return it.

        If Redis is unavailable the value is computed without caching.
        """
        cached = await self.get(*key_parts)
        if cached is not None:
            return cached

        result = await compute_fn()
        await self.set(*key_parts, value=result, ttl=ttl)
        return result

    async def invalidate_user_achievements(self, user_id: int) -> bool:
        """Drop the cached achievements list for ``user_id``."""
        return await self.delete("achievements", user_id)
