"""
Example: Local Pipeline Execution

This example submits a handful of indexes through the gateway and lets an
in-process worker pool compute them (no Redis or PostgreSQL required).
"""

import asyncio
from fibpipe import (
    Gateway,
    WorkerPool,
    InMemoryResultCache,
    InMemoryDurableLog,
    LocalMessageBus,
    ValidationError,
)


async def main():
    # Create the three backends
    cache = InMemoryResultCache()
    log = InMemoryDurableLog()
    bus = LocalMessageBus()
    await bus.connect()

    # Start two workers; both receive every dispatch
    pool = WorkerPool(cache=cache, bus=bus, num_workers=2)
    await pool.start()

    gateway = Gateway(cache=cache, log=log, bus=bus)

    print("Submitting indexes...")
    print("-" * 40)

    for index in [5, "10", 25, 10]:
        result = await gateway.submit(index)
        print(f"  submitted {result.index} (receivers={result.receivers})")

    try:
        await gateway.submit(41)
    except ValidationError as e:
        print(f"  rejected 41: {e}")

    print("\nImmediately after submit:")
    for key, value in (await gateway.current_values()).items():
        print(f"  {key}: {value}")

    await pool.wait_idle()

    print("-" * 40)
    print("\nDurable log:")
    print(f"  {[record.number for record in await gateway.list_all()]}")

    print("\nComputed values:")
    for key, value in sorted((await gateway.current_values()).items(), key=lambda kv: int(kv[0])):
        print(f"  fib({key}) = {value}")

    print("\nWorkers:")
    for info in pool.get_info():
        print(f"  - {info['worker_id']}: {info['completed']} completed")

    await pool.stop()
    await bus.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
