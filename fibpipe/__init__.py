"""
fibpipe
=======

Job submission pipeline: a gateway records each request, a pub/sub channel
fans it out to workers, and workers publish results to a low-latency cache.

Quick Start
-----------

Local execution (no Redis or PostgreSQL required):

    from fibpipe import (
        Gateway,
        WorkerPool,
        InMemoryResultCache,
        InMemoryDurableLog,
        LocalMessageBus,
    )

    cache, log, bus = InMemoryResultCache(), InMemoryDurableLog(), LocalMessageBus()
    await bus.connect()

    pool = WorkerPool(cache=cache, bus=bus, num_workers=2)
    await pool.start()

    gateway = Gateway(cache=cache, log=log, bus=bus)
    await gateway.submit(10)
    await pool.wait_idle()

    values = await gateway.current_values()   # {"10": "89"}

Distributed execution (requires Redis and PostgreSQL):

    python -m fibpipe gateway     # on the gateway machine
    python -m fibpipe worker      # on each worker machine
"""

__version__ = "0.1.0"

# Core exports
from fibpipe.core import (
    MAX_INDEX,
    PENDING,
    INSERT_CHANNEL,
    JobRequest,
    DurableRecord,
    CacheEntry,
    DispatchMessage,
    PipelineError,
    ValidationError,
    CacheWriteError,
    DurableWriteError,
    DispatchError,
    MessageDecodeError,
    fib,
    fib_recursive,
    get_compute,
    ResultCache,
    DurableLog,
    InMemoryResultCache,
    InMemoryDurableLog,
    MessageBus,
    LocalMessageBus,
    Gateway,
    SubmitResult,
    Worker,
    WorkerPool,
)

__all__ = [
    # Version
    "__version__",
    # Model
    "MAX_INDEX",
    "PENDING",
    "INSERT_CHANNEL",
    "JobRequest",
    "DurableRecord",
    "CacheEntry",
    "DispatchMessage",
    # Errors
    "PipelineError",
    "ValidationError",
    "CacheWriteError",
    "DurableWriteError",
    "DispatchError",
    "MessageDecodeError",
    # Compute
    "fib",
    "fib_recursive",
    "get_compute",
    # Stores
    "ResultCache",
    "DurableLog",
    "InMemoryResultCache",
    "InMemoryDurableLog",
    # Dispatch
    "MessageBus",
    "LocalMessageBus",
    # Gateway and workers
    "Gateway",
    "SubmitResult",
    "Worker",
    "WorkerPool",
]
