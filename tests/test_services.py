"""
Tests for backend wiring and the process entry points.
"""

import asyncio

import pytest

from fibpipe.__main__ import main
from fibpipe.config import Settings
from fibpipe.core import InMemoryDurableLog, InMemoryResultCache, LocalMessageBus, fib_recursive
from fibpipe.distributed import PostgresDurableLog, RedisMessageBus, RedisResultCache
from fibpipe.main import serve_workers
from fibpipe.services import Backends, build_gateway, build_worker_pool


@pytest.fixture
def settings():
    settings = Settings()
    settings.BACKEND = "memory"
    settings.RECONCILE_ON_START = False
    return settings


class TestBackends:

    def test_in_memory(self, settings):
        backends = Backends.from_settings(settings)
        assert isinstance(backends.cache, InMemoryResultCache)
        assert isinstance(backends.log, InMemoryDurableLog)
        assert isinstance(backends.bus, LocalMessageBus)

    def test_redis_backends_built_lazily(self, settings):
        settings.BACKEND = "redis"
        settings.REDIS_URL = "redis://cache:6379/0"
        settings.PGHOST = "db"
        settings.PGTABLE = "submissions"

        backends = Backends.from_settings(settings)

        assert isinstance(backends.cache, RedisResultCache)
        assert backends.cache.redis_url == "redis://cache:6379/0"
        assert isinstance(backends.bus, RedisMessageBus)
        assert isinstance(backends.log, PostgresDurableLog)
        assert backends.log.host == "db"
        assert backends.log.table == "submissions"
        assert backends.connected is False

    def test_unknown_backend(self, settings):
        settings.BACKEND = "carrier-pigeon"
        with pytest.raises(ValueError):
            Backends.from_settings(settings)

    @pytest.mark.asyncio
    async def test_connect_and_disconnect_are_idempotent(self):
        backends = Backends.in_memory()
        await backends.connect()
        await backends.connect()
        assert backends.connected
        await backends.disconnect()
        await backends.disconnect()
        assert not backends.connected


class TestBuilders:

    def test_gateway_uses_settings(self, settings):
        settings.MAX_INDEX = 12
        settings.DISPATCH_CHANNEL = "jobs"
        gateway = build_gateway(Backends.in_memory(), settings)
        assert gateway.max_index == 12
        assert gateway.channel == "jobs"

    def test_worker_pool_uses_settings(self, settings):
        settings.WORKER_COUNT = 3
        settings.WORKER_CAPACITY = 2
        settings.COMPUTE_MODE = "recursive"
        settings.COMPUTE_TIMEOUT = 4.0
        pool = build_worker_pool(Backends.in_memory(), settings)
        assert pool.num_workers == 3
        assert pool.capacity == 2
        assert pool.compute is fib_recursive
        assert pool.compute_timeout == 4.0


class TestServeWorkers:

    @pytest.mark.asyncio
    async def test_runs_until_stopped_and_reconciles(self, settings):
        settings.RECONCILE_ON_START = True
        backends = Backends.in_memory()
        await backends.cache.seed("9", "Nothing yet!")
        stop_event = asyncio.Event()

        task = asyncio.create_task(serve_workers(settings, backends, stop_event))
        for _ in range(200):
            if await backends.cache.get("9") == "55":
                break
            await asyncio.sleep(0.01)
        stop_event.set()
        await asyncio.wait_for(task, timeout=5.0)

        assert await backends.cache.get("9") == "55"
        assert backends.connected is False


class TestCommandLine:

    def test_diagram(self, capsys):
        assert main(["diagram"]) == 0
        out = capsys.readouterr().out
        assert "SUBMIT FLOW" in out
        assert "DISPATCH FAN-OUT" in out

    @pytest.mark.parametrize("argv", [[], ["bogus"], ["gateway", "extra"]])
    def test_usage(self, capsys, argv):
        assert main(argv) == 1
        assert "Usage" in capsys.readouterr().out
