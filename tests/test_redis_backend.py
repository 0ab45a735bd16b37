"""
Tests for the Redis result cache adapter.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.asyncio.retry import Retry

from fibpipe.core.models import PENDING
from fibpipe.distributed.redis_backend import RedisResultCache, create_redis_client


@pytest.fixture
def redis_client():
    client = MagicMock()
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    client.hget = AsyncMock(return_value="21")
    client.hset = AsyncMock(return_value=1)
    client.hsetnx = AsyncMock(return_value=1)
    client.hgetall = AsyncMock(return_value={"7": "21", "9": PENDING})
    return client


@pytest.fixture
async def redis_cache(redis_client):
    cache = RedisResultCache("redis://example:6379/0")
    with patch(
        "fibpipe.distributed.redis_backend.create_redis_client",
        return_value=redis_client,
    ) as factory:
        await cache.connect()
    factory.assert_called_once_with("redis://example:6379/0", 1.0, 5)
    yield cache
    await cache.disconnect()


class TestRedisResultCache:

    @pytest.mark.asyncio
    async def test_get_reads_hash_field(self, redis_cache, redis_client):
        assert await redis_cache.get("7") == "21"
        redis_client.hget.assert_awaited_once_with("values", "7")

    @pytest.mark.asyncio
    async def test_set_writes_hash_field(self, redis_cache, redis_client):
        await redis_cache.set("7", "21")
        redis_client.hset.assert_awaited_once_with("values", "7", "21")

    @pytest.mark.asyncio
    async def test_seed_is_set_if_absent(self, redis_cache, redis_client):
        assert await redis_cache.seed("9", PENDING) is True
        redis_client.hsetnx.assert_awaited_once_with("values", "9", PENDING)

        redis_client.hsetnx.return_value = 0
        assert await redis_cache.seed("9", PENDING) is False

    @pytest.mark.asyncio
    async def test_get_all(self, redis_cache, redis_client):
        assert await redis_cache.get_all() == {"7": "21", "9": PENDING}
        redis_client.hgetall.assert_awaited_once_with("values")

    @pytest.mark.asyncio
    async def test_get_all_empty(self, redis_cache, redis_client):
        redis_client.hgetall.return_value = {}
        assert await redis_cache.get_all() == {}

    @pytest.mark.asyncio
    async def test_custom_hash_key(self, redis_client):
        cache = RedisResultCache(hash_key="results")
        with patch(
            "fibpipe.distributed.redis_backend.create_redis_client",
            return_value=redis_client,
        ):
            await cache.connect()
        await cache.set("1", "1")
        redis_client.hset.assert_awaited_once_with("results", "1", "1")

    @pytest.mark.asyncio
    async def test_disconnect_closes_client(self, redis_client):
        cache = RedisResultCache()
        with patch(
            "fibpipe.distributed.redis_backend.create_redis_client",
            return_value=redis_client,
        ):
            await cache.connect()
        await cache.disconnect()
        await cache.disconnect()
        redis_client.aclose.assert_awaited_once()


class TestCreateRedisClient:

    def test_fixed_interval_reconnect_policy(self):
        with patch("fibpipe.distributed.redis_backend.redis.from_url") as from_url:
            create_redis_client("redis://example:6379/0", 2.5, 7)

        args, kwargs = from_url.call_args
        assert args == ("redis://example:6379/0",)
        assert kwargs["decode_responses"] is True
        assert isinstance(kwargs["retry"], Retry)
        assert len(kwargs["retry_on_error"]) == 2
