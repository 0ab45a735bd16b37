"""
Redis backend for the result cache.

All entries live in a single hash (``values`` by default) so a snapshot is
one HGETALL. Clients reconnect at a fixed interval on connection errors.
"""

from typing import Dict, Optional
import logging

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import ConstantBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ..core.stores import ResultCache

logger = logging.getLogger(__name__)


def create_redis_client(
    redis_url: str,
    reconnect_interval: float = 1.0,
    reconnect_attempts: int = 5,
) -> redis.Redis:
    """
    Build an asyncio Redis client with a fixed-interval reconnect policy.

    Args:
        redis_url: Redis connection URL
        reconnect_interval: Seconds between reconnect attempts
        reconnect_attempts: Attempts per command, -1 retries forever
    """
    return redis.from_url(
        redis_url,
        encoding="utf-8",
        decode_responses=True,
        retry=Retry(ConstantBackoff(reconnect_interval), reconnect_attempts),
        retry_on_error=[RedisConnectionError, RedisTimeoutError],
    )


class RedisResultCache(ResultCache):
    """
    Redis-backed result cache.

    Example:
        cache = RedisResultCache("redis://localhost:6379/0")
        await cache.connect()

        await cache.seed("7", "Nothing yet!")
        await cache.set("7", "21")
        values = await cache.get_all()
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        hash_key: str = "values",
        reconnect_interval: float = 1.0,
        reconnect_attempts: int = 5,
    ):
        self.redis_url = redis_url
        self.hash_key = hash_key
        self.reconnect_interval = reconnect_interval
        self.reconnect_attempts = reconnect_attempts
        self._client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        self._client = create_redis_client(
            self.redis_url,
            self.reconnect_interval,
            self.reconnect_attempts,
        )
        await self._client.ping()
        logger.info(f"Result cache connected to Redis at {self.redis_url}")

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Result cache disconnected")

    async def get(self, key: str) -> Optional[str]:
        return await self._client.hget(self.hash_key, key)

    async def set(self, key: str, value: str) -> None:
        await self._client.hset(self.hash_key, key, value)

    async def seed(self, key: str, value: str) -> bool:
        return bool(await self._client.hsetnx(self.hash_key, key, value))

    async def get_all(self) -> Dict[str, str]:
        values = await self._client.hgetall(self.hash_key)
        return dict(values or {})
