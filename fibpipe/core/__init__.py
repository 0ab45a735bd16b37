# Submission pipeline core
# Core module exports

from .models import (
    MAX_INDEX,
    PENDING,
    INSERT_CHANNEL,
    JobRequest,
    DurableRecord,
    CacheEntry,
    DispatchMessage,
)
from .errors import (
    PipelineError,
    ValidationError,
    CacheWriteError,
    DurableWriteError,
    DispatchError,
    MessageDecodeError,
)
from .compute import fib, fib_recursive, get_compute
from .stores import ResultCache, DurableLog, InMemoryResultCache, InMemoryDurableLog
from .bus import MessageBus, LocalMessageBus
from .gateway import Gateway, SubmitResult
from .worker import Worker, WorkerPool

__all__ = [
    "MAX_INDEX",
    "PENDING",
    "INSERT_CHANNEL",
    "JobRequest",
    "DurableRecord",
    "CacheEntry",
    "DispatchMessage",
    "PipelineError",
    "ValidationError",
    "CacheWriteError",
    "DurableWriteError",
    "DispatchError",
    "MessageDecodeError",
    "fib",
    "fib_recursive",
    "get_compute",
    "ResultCache",
    "DurableLog",
    "InMemoryResultCache",
    "InMemoryDurableLog",
    "MessageBus",
    "LocalMessageBus",
    "Gateway",
    "SubmitResult",
    "Worker",
    "WorkerPool",
]
