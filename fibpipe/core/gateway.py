"""
Gateway for job submission and read queries.

The gateway:
- Validates submitted indexes
- Seeds the result cache with the pending marker
- Appends the request to the durable log (best effort)
- Publishes a dispatch notification for the workers
- Serves snapshots of the durable log and the result cache
"""

from dataclasses import dataclass
from typing import Any, Dict, List
import logging

from .bus import MessageBus
from .errors import CacheWriteError, DispatchError, DurableWriteError
from .models import (
    INSERT_CHANNEL,
    MAX_INDEX,
    PENDING,
    DispatchMessage,
    DurableRecord,
    JobRequest,
)
from .stores import DurableLog, ResultCache

logger = logging.getLogger(__name__)


@dataclass
class SubmitResult:
    """Outcome of an accepted submission."""
    accepted: bool
    index: int
    durable: bool = True
    receivers: int = 0


class Gateway:
    """
    Front door of the pipeline.

    Writes happen in a fixed order: the pending marker is seeded before the
    dispatch is published, so no worker can write a final value that a late
    seed would then overwrite. The durable append sits between the two and
    never fails the request.

    Example:
        gateway = Gateway(
            cache=InMemoryResultCache(),
            log=InMemoryDurableLog(),
            bus=LocalMessageBus(),
        )

        await gateway.submit("7")
        values = await gateway.current_values()
    """

    def __init__(
        self,
        cache: ResultCache,
        log: DurableLog,
        bus: MessageBus,
        max_index: int = MAX_INDEX,
        channel: str = INSERT_CHANNEL,
        pending_marker: str = PENDING,
    ):
        self.cache = cache
        self.log = log
        self.bus = bus
        self.max_index = max_index
        self.channel = channel
        self.pending_marker = pending_marker

    def validate(self, raw_index: Any) -> JobRequest:
        """Validate without side effects. Raises ValidationError."""
        return JobRequest.parse(raw_index, self.max_index)

    async def submit(self, raw_index: Any) -> SubmitResult:
        """
        Accept a job request.

        Args:
            raw_index: Index as received from the client (int or numeric string)

        Raises:
            ValidationError: Nothing was written or published
            CacheWriteError: The pending marker could not be seeded
            DispatchError: The notification could not be published
        """
        request = self.validate(raw_index)

        try:
            seeded = await self.cache.seed(request.key, self.pending_marker)
        except Exception as e:
            logger.error(f"Failed to seed cache for index {request.index}: {e}")
            raise CacheWriteError(request.key, e) from e

        if not seeded:
            logger.debug(f"Cache entry for {request.index} already present")

        durable = await self._append(request)

        message = DispatchMessage(payload=request.index, channel=self.channel)
        try:
            receivers = await self.bus.publish(self.channel, message)
        except Exception as e:
            logger.error(f"Failed to dispatch index {request.index}: {e}")
            raise DispatchError(self.channel, e) from e

        logger.info(
            f"Accepted index {request.index} (durable={durable}, receivers={receivers})"
        )
        return SubmitResult(
            accepted=True,
            index=request.index,
            durable=durable,
            receivers=receivers or 0,
        )

    async def _append(self, request: JobRequest) -> bool:
        """Best-effort durable append; failures are logged, not raised."""
        try:
            await self.log.append(DurableRecord(number=request.index))
            return True
        except Exception as e:
            error = DurableWriteError(request.index, e)
            logger.error(str(error))
            return False

    async def list_all(self) -> List[DurableRecord]:
        """Every durable record, in insertion order."""
        return await self.log.scan_all()

    async def current_values(self) -> Dict[str, str]:
        """Snapshot of the result cache, pending entries included."""
        return await self.cache.get_all()
