"""
Redis Cache Implementation
Async Redis-based cache provider
"""

import json
import logging
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from commerce_iam.app.services.cache import CacheError, ICache

logger = logging.getLogger(__name__)


class RedisCache(ICache):
    """
    Async Redis cache implementation.

    Redis is only an optimization; the relational store stays the source of
    truth. Faults are logged and re-raised as CacheError.

    Attributes:
        redis: Async Redis client
        key_prefix: Prefix for all cache keys (for namespacing)
    """

    def __init__(self, redis: Redis, key_prefix: str = "commerce"):
        self.redis = redis
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "commerce") -> "RedisCache":
        return cls(Redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

    def _make_key(self, key: str) -> str:
        """Create prefixed key for namespacing."""
        return f"{self.key_prefix}:{key}" if self.key_prefix else key

    async def get(self, key: str) -> Optional[Any]:
        try:
            value = await self.redis.get(self._make_key(key))
        except RedisError as e:
            logger.error(f"Redis GET failed for {key}: {e}")
            raise CacheError(str(e)) from e

        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to deserialize cached value for {key}: {e}")
            raise CacheError(str(e)) from e

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Set a value in cache with optional TTL.

        Args:
            key: Cache key
            value: Value to cache (must be JSON-serializable)
            ttl: Time-to-live in seconds
        """
        try:
            serialized = json.dumps(value)
            if ttl:
                await self.redis.setex(self._make_key(key), ttl, serialized)
            else:
                await self.redis.set(self._make_key(key), serialized)
        except (RedisError, TypeError, ValueError) as e:
            logger.error(f"Redis SET failed for {key}: {e}")
            raise CacheError(str(e)) from e

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(self._make_key(key))
        except RedisError as e:
            logger.error(f"Redis DELETE failed for {key}: {e}")
            raise CacheError(str(e)) from e

    async def incr(self, key: str, ttl: Optional[int] = None) -> int:
        """
        Increment a counter and refresh its expiry in one round trip.

        Args:
            key: Cache key
            ttl: Time-to-live in seconds applied after the increment

        Returns:
            New value after increment
        """
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.incr(self._make_key(key))
                if ttl:
                    pipe.expire(self._make_key(key), ttl)
                results = await pipe.execute()
            return int(results[0])
        except RedisError as e:
            logger.error(f"Redis INCR failed for {key}: {e}")
            raise CacheError(str(e)) from e

    async def close(self) -> None:
        await self.redis.aclose()
