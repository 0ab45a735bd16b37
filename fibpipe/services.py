"""
Scoped backend handles.

A Backends bundle owns the result cache, durable log and dispatch channel
for one process. It is built from settings (or injected directly), connected
once at startup and disconnected at shutdown.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from .config import Settings, get_settings
from .core.bus import LocalMessageBus, MessageBus
from .core.compute import get_compute
from .core.gateway import Gateway
from .core.stores import DurableLog, InMemoryDurableLog, InMemoryResultCache, ResultCache
from .core.worker import WorkerPool

logger = logging.getLogger(__name__)


@dataclass
class Backends:
    """The three collaborators shared by the gateway and the workers."""
    cache: ResultCache
    log: DurableLog
    bus: MessageBus
    connected: bool = False

    @classmethod
    def in_memory(cls) -> "Backends":
        return cls(
            cache=InMemoryResultCache(),
            log=InMemoryDurableLog(),
            bus=LocalMessageBus(),
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Backends":
        settings = settings or get_settings()

        if settings.BACKEND == "memory":
            return cls.in_memory()
        if settings.BACKEND != "redis":
            raise ValueError(f"Unknown backend '{settings.BACKEND}'")

        from .distributed import PostgresDurableLog, RedisMessageBus, RedisResultCache

        return cls(
            cache=RedisResultCache(
                settings.REDIS_URL,
                hash_key=settings.CACHE_KEY,
                reconnect_interval=settings.RECONNECT_INTERVAL,
                reconnect_attempts=settings.RECONNECT_ATTEMPTS,
            ),
            log=PostgresDurableLog(
                host=settings.PGHOST,
                port=settings.PGPORT,
                user=settings.PGUSER,
                password=settings.PGPASSWORD,
                database=settings.PGDATABASE,
                table=settings.PGTABLE,
            ),
            bus=RedisMessageBus(
                settings.REDIS_URL,
                reconnect_interval=settings.RECONNECT_INTERVAL,
                reconnect_attempts=settings.RECONNECT_ATTEMPTS,
            ),
        )

    async def connect(self) -> None:
        """Connect all backends."""
        if self.connected:
            return
        await self.cache.connect()
        await self.log.connect()
        await self.bus.connect()
        self.connected = True
        logger.info("Backends connected")

    async def disconnect(self) -> None:
        """Disconnect all backends."""
        if not self.connected:
            return
        await self.bus.disconnect()
        await self.log.disconnect()
        await self.cache.disconnect()
        self.connected = False
        logger.info("Backends disconnected")


def build_gateway(backends: Backends, settings: Optional[Settings] = None) -> Gateway:
    settings = settings or get_settings()
    return Gateway(
        cache=backends.cache,
        log=backends.log,
        bus=backends.bus,
        max_index=settings.MAX_INDEX,
        channel=settings.DISPATCH_CHANNEL,
    )


def build_worker_pool(backends: Backends, settings: Optional[Settings] = None) -> WorkerPool:
    settings = settings or get_settings()
    return WorkerPool(
        cache=backends.cache,
        bus=backends.bus,
        num_workers=settings.WORKER_COUNT,
        capacity=settings.WORKER_CAPACITY,
        compute=get_compute(settings.COMPUTE_MODE),
        compute_timeout=settings.COMPUTE_TIMEOUT,
        channel=settings.DISPATCH_CHANNEL,
    )
