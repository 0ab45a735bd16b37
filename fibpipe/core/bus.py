"""
Dispatch channel contract.

The channel is a broadcast publish/subscribe primitive:
- every handler subscribed at publish time receives every message
- messages published with no subscriber are dropped, with no replay
- nothing is persisted
"""

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from .models import DispatchMessage

logger = logging.getLogger(__name__)


# Type for message handlers
MessageHandler = Callable[[DispatchMessage], Any]


async def call_handler(handler: MessageHandler, message: DispatchMessage) -> None:
    """Invoke a sync or async handler, logging instead of raising."""
    try:
        result = handler(message)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        logger.error(f"Handler error on {message.channel}: {e}")


class MessageBus(ABC):
    """
    Abstract message bus for gateway -> worker dispatch.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Connect to the message bus."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from the message bus."""
        pass

    @abstractmethod
    async def publish(self, channel: str, message: DispatchMessage) -> int:
        """Publish a message. Returns the number of receivers, if known."""
        pass

    @abstractmethod
    async def subscribe(
        self,
        channels: List[str],
        handler: MessageHandler,
    ) -> None:
        """Subscribe to channels with a handler."""
        pass

    @abstractmethod
    async def unsubscribe(
        self,
        channels: List[str],
        handler: Optional[MessageHandler] = None,
    ) -> None:
        """Remove one handler, or every handler when none is given."""
        pass


class LocalMessageBus(MessageBus):
    """
    In-memory message bus for testing and single-process deployments.
    """

    def __init__(self):
        self._handlers: Dict[str, List[MessageHandler]] = {}
        self._running = False

    async def connect(self) -> None:
        self._running = True

    async def disconnect(self) -> None:
        self._running = False
        self._handlers.clear()

    async def publish(self, channel: str, message: DispatchMessage) -> int:
        handlers = list(self._handlers.get(channel, []))
        if not handlers:
            logger.debug(f"No subscribers on {channel}, dropping {message.payload}")
            return 0

        for handler in handlers:
            await call_handler(handler, message)
        return len(handlers)

    async def subscribe(
        self,
        channels: List[str],
        handler: MessageHandler,
    ) -> None:
        for channel in channels:
            if channel not in self._handlers:
                self._handlers[channel] = []
            self._handlers[channel].append(handler)

    async def unsubscribe(
        self,
        channels: List[str],
        handler: Optional[MessageHandler] = None,
    ) -> None:
        for channel in channels:
            if handler is None:
                self._handlers.pop(channel, None)
                continue
            handlers = self._handlers.get(channel, [])
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                self._handlers.pop(channel, None)

    def subscriber_count(self, channel: str) -> int:
        return len(self._handlers.get(channel, []))
