"""
Unit tests for the cache backends
"""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from commerce_iam.adapter.cache.memory_cache import InMemoryCache
from commerce_iam.adapter.cache.redis_cache import RedisCache
from commerce_iam.app.services.cache import CacheError
from tests.fixtures.factories import FakeClock


@pytest.fixture
def redis():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    client.setex = AsyncMock()
    client.delete = AsyncMock()
    client.aclose = AsyncMock()

    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[3, True])
    client.pipeline.return_value.__aenter__ = AsyncMock(return_value=pipe)
    client.pipeline.return_value.__aexit__ = AsyncMock(return_value=False)
    client.pipe = pipe
    return client


@pytest.mark.asyncio
async def test_memory_cache_expires_lazily():
    clock = FakeClock()
    cache = InMemoryCache(clock=clock)
    await cache.set("k", {"a": 1}, ttl=10)

    clock.advance(9)
    assert await cache.get("k") == {"a": 1}
    clock.advance(1)
    assert await cache.get("k") is None


@pytest.mark.asyncio
async def test_memory_cache_returns_copies():
    cache = InMemoryCache()
    await cache.set("k", {"a": [1]})

    value = await cache.get("k")
    value["a"].append(2)

    assert await cache.get("k") == {"a": [1]}


@pytest.mark.asyncio
async def test_memory_cache_incr_rearms_ttl():
    clock = FakeClock()
    cache = InMemoryCache(clock=clock)

    assert await cache.incr("n", ttl=10) == 1
    clock.advance(8)
    assert await cache.incr("n", ttl=10) == 2
    clock.advance(8)
    assert await cache.get("n") == 2


@pytest.mark.asyncio
async def test_redis_set_uses_prefix_and_ttl(redis):
    cache = RedisCache(redis, key_prefix="shop")

    await cache.set("session:user:1", {"id": "1"}, ttl=60)

    redis.setex.assert_called_once_with("shop:session:user:1", 60, json.dumps({"id": "1"}))


@pytest.mark.asyncio
async def test_redis_get_decodes_json(redis):
    redis.get.return_value = '{"name": "CUSTOMER"}'
    cache = RedisCache(redis)

    assert await cache.get("role:1") == {"name": "CUSTOMER"}
    redis.get.assert_called_once_with("commerce:role:1")


@pytest.mark.asyncio
async def test_redis_incr_sets_expiry_in_same_pipeline(redis):
    cache = RedisCache(redis)

    assert await cache.incr("login-attempts:a@b.c", ttl=3600) == 3
    redis.pipe.incr.assert_called_once_with("commerce:login-attempts:a@b.c")
    redis.pipe.expire.assert_called_once_with("commerce:login-attempts:a@b.c", 3600)


@pytest.mark.asyncio
async def test_redis_fault_becomes_cache_error(redis):
    redis.get.side_effect = RedisConnectionError("refused")
    cache = RedisCache(redis)

    with pytest.raises(CacheError):
        await cache.get("k")


@pytest.mark.asyncio
async def test_redis_unserializable_value(redis):
    cache = RedisCache(redis)

    with pytest.raises(CacheError):
        await cache.set("k", object())


@pytest.mark.asyncio
async def test_redis_close(redis):
    await RedisCache(redis).close()

    redis.aclose.assert_called_once()
