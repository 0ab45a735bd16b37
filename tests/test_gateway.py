"""
Tests for the Gateway: validation, write ordering, and read queries.
"""

from unittest.mock import AsyncMock

import pytest

from fibpipe.core import (
    PENDING,
    CacheWriteError,
    DispatchError,
    DispatchMessage,
    DurableRecord,
    Gateway,
    InMemoryDurableLog,
    InMemoryResultCache,
    LocalMessageBus,
    ValidationError,
)


class TestSubmitValidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [41, 1000, "41", -1, "abc", None, 2.5, True, "4_0", "+7"])
    async def test_rejected_without_side_effects(self, gateway, cache, log, bus, raw):
        received = []
        await bus.subscribe(["insert"], received.append)

        with pytest.raises(ValidationError):
            await gateway.submit(raw)

        assert await cache.get_all() == {}
        assert await log.scan_all() == []
        assert received == []

    @pytest.mark.asyncio
    async def test_custom_max_index(self, cache, log, bus):
        gateway = Gateway(cache=cache, log=log, bus=bus, max_index=5)
        with pytest.raises(ValidationError, match="Index too high"):
            await gateway.submit(6)
        result = await gateway.submit(5)
        assert result.accepted


class TestSubmit:

    @pytest.mark.asyncio
    async def test_accepted_submission_writes_everything(self, gateway, cache, log, bus):
        received = []
        await bus.subscribe(["insert"], received.append)

        result = await gateway.submit("7")

        assert result.accepted is True
        assert result.index == 7
        assert result.durable is True
        assert result.receivers == 1
        assert await cache.get_all() == {"7": PENDING}
        assert await log.scan_all() == [DurableRecord(7)]
        assert received == [DispatchMessage(payload=7)]

    @pytest.mark.asyncio
    async def test_pending_visible_before_any_worker(self, gateway):
        await gateway.submit(9)
        assert (await gateway.current_values())["9"] == PENDING

    @pytest.mark.asyncio
    async def test_seed_happens_before_publish(self, gateway, cache, bus):
        seen_at_publish = {}

        async def handler(message):
            seen_at_publish[message.payload] = await cache.get(str(message.payload))

        await bus.subscribe(["insert"], handler)
        await gateway.submit(4)

        assert seen_at_publish == {4: PENDING}

    @pytest.mark.asyncio
    async def test_seed_does_not_revert_final_value(self, gateway, cache):
        await cache.set("10", "89")

        await gateway.submit(10)

        assert await cache.get("10") == "89"

    @pytest.mark.asyncio
    async def test_duplicates_create_two_records(self, gateway, log):
        await gateway.submit(3)
        await gateway.submit(3)
        assert await gateway.list_all() == [DurableRecord(3), DurableRecord(3)]

    @pytest.mark.asyncio
    async def test_no_subscribers_still_accepted(self, gateway):
        result = await gateway.submit(2)
        assert result.accepted
        assert result.receivers == 0


class TestSubmitFailures:

    @pytest.mark.asyncio
    async def test_durable_write_failure_is_not_fatal(self, cache, bus):
        log = InMemoryDurableLog()
        log.append = AsyncMock(side_effect=ConnectionError("db down"))
        received = []
        await bus.subscribe(["insert"], received.append)
        gateway = Gateway(cache=cache, log=log, bus=bus)

        result = await gateway.submit(6)

        assert result.accepted
        assert result.durable is False
        assert await cache.get("6") == PENDING
        assert received == [DispatchMessage(payload=6)]

    @pytest.mark.asyncio
    async def test_cache_failure_publishes_nothing(self, log, bus):
        cache = InMemoryResultCache()
        cache.seed = AsyncMock(side_effect=ConnectionError("redis down"))
        received = []
        await bus.subscribe(["insert"], received.append)
        gateway = Gateway(cache=cache, log=log, bus=bus)

        with pytest.raises(CacheWriteError) as exc_info:
            await gateway.submit(6)

        assert exc_info.value.key == "6"
        assert received == []
        assert await log.scan_all() == []

    @pytest.mark.asyncio
    async def test_publish_failure_raises_dispatch_error(self, cache, log):
        bus = LocalMessageBus()
        bus.publish = AsyncMock(side_effect=ConnectionError("bus down"))
        gateway = Gateway(cache=cache, log=log, bus=bus)

        with pytest.raises(DispatchError):
            await gateway.submit(1)

        # The pending marker and the record were already written
        assert await cache.get("1") == PENDING
        assert await log.scan_all() == [DurableRecord(1)]


class TestReads:

    @pytest.mark.asyncio
    async def test_list_all_preserves_insertion_order(self, gateway):
        for index in (5, 1, 3):
            await gateway.submit(index)
        assert [r.number for r in await gateway.list_all()] == [5, 1, 3]

    @pytest.mark.asyncio
    async def test_current_values_is_a_snapshot(self, gateway, cache):
        await gateway.submit(2)
        snapshot = await gateway.current_values()
        await cache.set("2", "2")
        assert snapshot == {"2": PENDING}
