"""
Worker implementation for dispatched compute jobs.

Workers:
- Subscribe to the dispatch channel
- Queue every received index locally
- Compute the result off the event loop
- Write the final value into the result cache
"""

from typing import Dict, List, Optional, Set
import asyncio
import uuid
import logging

from .bus import MessageBus
from .compute import ComputeFunc, fib
from .models import INSERT_CHANNEL, PENDING, CacheEntry, DispatchMessage
from .stores import DurableLog, ResultCache

logger = logging.getLogger(__name__)


class Worker:
    """
    A worker that computes results for dispatched indexes.

    The subscription handler only enqueues; ``capacity`` loops drain the
    queue. The queue is unbounded, so a slow worker builds a backlog rather
    than pushing back on the gateway. There are no retries: a failed or timed
    out computation leaves the entry pending.

    Example:
        worker = Worker(cache=cache, bus=bus, capacity=2)
        await worker.start()
        ...
        await worker.stop()
    """

    def __init__(
        self,
        cache: ResultCache,
        bus: MessageBus,
        worker_id: Optional[str] = None,
        capacity: int = 1,
        compute: ComputeFunc = fib,
        compute_timeout: Optional[float] = None,
        channel: str = INSERT_CHANNEL,
        pending_marker: str = PENDING,
    ):
        self.cache = cache
        self.bus = bus
        self.worker_id = worker_id or f"worker-{uuid.uuid4().hex[:8]}"
        self.capacity = capacity
        self.compute = compute
        self.compute_timeout = compute_timeout
        self.channel = channel
        self.pending_marker = pending_marker

        self._running = False
        self._current: Set[int] = set()
        self._task_queue: Optional[asyncio.Queue] = None
        self._shutdown_event = asyncio.Event()
        self._loops: List[asyncio.Task] = []
        self.completed = 0
        self.failed = 0

    async def handle_message(self, message: DispatchMessage) -> None:
        """Subscription handler: queue the index for computation."""
        await self.submit(message.payload)

    async def submit(self, index: int) -> None:
        """Queue an index for computation."""
        if self._task_queue is None:
            self._task_queue = asyncio.Queue()
        await self._task_queue.put(index)

    async def process(self, index: int) -> bool:
        """
        Compute ``index`` and write the result.

        Returns True when the final value was written.
        """
        self._current.add(index)
        try:
            loop = asyncio.get_running_loop()
            result = await asyncio.wait_for(
                loop.run_in_executor(None, self.compute, index),
                timeout=self.compute_timeout,
            )
        except asyncio.TimeoutError:
            logger.error(
                f"Worker {self.worker_id}: index {index} timed out after "
                f"{self.compute_timeout}s, entry stays pending"
            )
            self.failed += 1
            return False
        except Exception as e:
            logger.error(f"Worker {self.worker_id}: compute failed for {index}: {e}")
            self.failed += 1
            return False
        finally:
            self._current.discard(index)

        try:
            await self.cache.set(str(index), str(result))
        except Exception as e:
            logger.error(
                f"Worker {self.worker_id}: cache write failed for {index}: {e}"
            )
            self.failed += 1
            return False

        self.completed += 1
        logger.debug(f"Worker {self.worker_id}: {index} -> {result}")
        return True

    async def _worker_loop(self, worker_num: int) -> None:
        """Main loop that drains the local queue."""
        logger.info(f"Worker {self.worker_id} loop {worker_num} started")

        while not self._shutdown_event.is_set():
            try:
                try:
                    index = await asyncio.wait_for(
                        self._task_queue.get(),
                        timeout=1.0
                    )
                except asyncio.TimeoutError:
                    continue

                if index is None:
                    # Shutdown sentinel
                    self._task_queue.task_done()
                    break

                try:
                    await self.process(index)
                finally:
                    self._task_queue.task_done()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Worker {self.worker_id} loop {worker_num} error: {e}")

        logger.info(f"Worker {self.worker_id} loop {worker_num} stopped")

    async def start(self) -> None:
        """Start consuming the dispatch channel."""
        if self._running:
            return

        self._running = True
        self._shutdown_event.clear()
        if self._task_queue is None:
            self._task_queue = asyncio.Queue()

        for i in range(self.capacity):
            self._loops.append(asyncio.create_task(self._worker_loop(i)))

        await self.bus.subscribe([self.channel], self.handle_message)

        logger.info(
            f"Worker {self.worker_id} started with {self.capacity} loops on '{self.channel}'"
        )

    async def stop(self, timeout: float = 30.0) -> None:
        """Stop the worker gracefully."""
        if not self._running:
            return

        logger.info(f"Stopping worker {self.worker_id}...")

        await self.bus.unsubscribe([self.channel], self.handle_message)

        # One sentinel per loop, queued behind any remaining work
        for _ in self._loops:
            await self._task_queue.put(None)

        if self._loops:
            done, pending = await asyncio.wait(self._loops, timeout=timeout)
            self._shutdown_event.set()
            for task in pending:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self._running = False
        self._loops.clear()
        # Work abandoned by cancelled loops is dropped with the old queue
        self._task_queue = asyncio.Queue()

        logger.info(f"Worker {self.worker_id} stopped")

    async def wait_idle(self) -> None:
        """Wait until every queued index has been processed."""
        if self._task_queue is not None:
            await self._task_queue.join()

    async def reconcile(self, log: Optional[DurableLog] = None) -> List[int]:
        """
        Re-queue work whose dispatch may have been lost.

        Queues every pending cache entry and, when ``log`` is given, every
        logged index with no final value in the cache.
        """
        values = await self.cache.get_all()
        indexes: Set[int] = set()

        for key, value in values.items():
            entry = CacheEntry.from_item(key, value)
            if value == self.pending_marker:
                try:
                    indexes.add(entry.index)
                except ValueError:
                    logger.warning(f"Skipping non-numeric cache key {key!r}")

        if log is not None:
            for record in await log.scan_all():
                value = values.get(str(record.number))
                if value is None or value == self.pending_marker:
                    indexes.add(record.number)

        for index in sorted(indexes):
            await self.submit(index)

        if indexes:
            logger.info(f"Worker {self.worker_id} reconciled {len(indexes)} indexes")
        return sorted(indexes)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def current_load(self) -> int:
        return len(self._current)

    @property
    def backlog(self) -> int:
        return self._task_queue.qsize() if self._task_queue is not None else 0

    def get_info(self) -> Dict[str, object]:
        return {
            "worker_id": self.worker_id,
            "capacity": self.capacity,
            "current_load": self.current_load,
            "backlog": self.backlog,
            "completed": self.completed,
            "failed": self.failed,
        }


class WorkerPool:
    """
    Pool of workers sharing one dispatch channel.

    Each worker subscribes separately, so every worker receives every
    message. Duplicate computation is harmless because the result is a pure
    function of the index.
    """

    def __init__(
        self,
        cache: ResultCache,
        bus: MessageBus,
        num_workers: int = 1,
        capacity: int = 1,
        compute: ComputeFunc = fib,
        compute_timeout: Optional[float] = None,
        channel: str = INSERT_CHANNEL,
        pending_marker: str = PENDING,
    ):
        self.cache = cache
        self.bus = bus
        self.num_workers = num_workers
        self.capacity = capacity
        self.compute = compute
        self.compute_timeout = compute_timeout
        self.channel = channel
        self.pending_marker = pending_marker
        self._workers: List[Worker] = []
        self._running = False

    @property
    def workers(self) -> List[Worker]:
        return list(self._workers)

    async def start(self) -> None:
        """Start all workers."""
        if self._running:
            return

        for i in range(self.num_workers):
            worker = Worker(
                cache=self.cache,
                bus=self.bus,
                worker_id=f"pool-worker-{i}",
                capacity=self.capacity,
                compute=self.compute,
                compute_timeout=self.compute_timeout,
                channel=self.channel,
                pending_marker=self.pending_marker,
            )
            await worker.start()
            self._workers.append(worker)

        self._running = True
        logger.info(f"Worker pool started with {self.num_workers} workers")

    async def stop(self) -> None:
        """Stop all workers."""
        for worker in self._workers:
            await worker.stop()
        self._workers.clear()
        self._running = False
        logger.info("Worker pool stopped")

    async def wait_idle(self) -> None:
        """Wait until every worker has drained its queue."""
        await asyncio.gather(*(worker.wait_idle() for worker in self._workers))

    async def reconcile(self, log: Optional[DurableLog] = None) -> List[int]:
        """Run a reconciliation pass on the first worker."""
        if not self._workers:
            raise RuntimeError("Worker pool not started")
        return await self._workers[0].reconcile(log)

    def get_info(self) -> List[Dict[str, object]]:
        return [worker.get_info() for worker in self._workers]
