"""
Storage contracts for the pipeline.

Two stores with different jobs:
- ResultCache: low-latency index -> value map, not durable
- DurableLog: append-only record of every accepted submission

This module holds the interfaces and in-memory implementations used for
tests and single-process runs. Redis and PostgreSQL backends live in
``fibpipe.distributed``.
"""

import asyncio
from typing import Dict, List, Optional

from .models import DurableRecord


class ResultCache:
    """
    Key-value store for computed (or pending) results.

    This is an abstract interface. Keys are stringified indexes and values
    are either the pending marker or a string-encoded integer.
    """

    async def connect(self) -> None:
        """Acquire the underlying connection."""

    async def disconnect(self) -> None:
        """Release the underlying connection."""

    async def get(self, key: str) -> Optional[str]:
        """Get a single value, or None if absent."""
        raise NotImplementedError

    async def set(self, key: str, value: str) -> None:
        """Unconditionally write a value (last write wins)."""
        raise NotImplementedError

    async def seed(self, key: str, value: str) -> bool:
        """Write ``value`` only if ``key`` is absent. Returns True if written."""
        raise NotImplementedError

    async def get_all(self) -> Dict[str, str]:
        """Snapshot of every entry."""
        raise NotImplementedError


class DurableLog:
    """
    Append-only log of accepted submissions.

    This is an abstract interface. Records are never updated or deleted.
    """

    async def connect(self) -> None:
        """Acquire the underlying connection."""

    async def disconnect(self) -> None:
        """Release the underlying connection."""

    async def append(self, record: DurableRecord) -> None:
        """Append a record."""
        raise NotImplementedError

    async def scan_all(self) -> List[DurableRecord]:
        """All records in insertion order."""
        raise NotImplementedError


class InMemoryResultCache(ResultCache):
    """Dict-backed result cache for tests and single-process deployments."""

    def __init__(self):
        self._values: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def seed(self, key: str, value: str) -> bool:
        if key in self._values:
            return False
        self._values[key] = value
        return True

    async def get_all(self) -> Dict[str, str]:
        return dict(self._values)


class InMemoryDurableLog(DurableLog):
    """List-backed durable log for tests and single-process deployments."""

    def __init__(self):
        self._records: List[DurableRecord] = []
        self._lock = asyncio.Lock()

    async def append(self, record: DurableRecord) -> None:
        async with self._lock:
            self._records.append(record)

    async def scan_all(self) -> List[DurableRecord]:
        async with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        return len(self._records)
