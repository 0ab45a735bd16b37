# Distributed backends for the submission pipeline

from .redis_backend import RedisResultCache, create_redis_client
from .message_bus import RedisMessageBus
from .postgres_backend import PostgresDurableLog

__all__ = [
    "RedisResultCache",
    "create_redis_client",
    "RedisMessageBus",
    "PostgresDurableLog",
]
