"""
Redis pub/sub dispatch channel.

Provides broadcast messaging from the gateway to workers:
- PUBLISH of the bare index on the ``insert`` channel
- one listener task per bus instance, fanning out to local handlers
- no persistence; a message with no subscriber is lost
"""

import asyncio
from typing import Dict, List, Optional
import logging

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ..core.bus import MessageBus, MessageHandler, call_handler
from ..core.errors import MessageDecodeError
from ..core.models import DispatchMessage
from .redis_backend import create_redis_client

logger = logging.getLogger(__name__)


class RedisMessageBus(MessageBus):
    """
    Redis-backed message bus using pub/sub.

    Example:
        bus = RedisMessageBus("redis://localhost:6379/0")
        await bus.connect()

        # Subscribe to dispatches
        async def handle(message):
            print(f"Index submitted: {message.payload}")

        await bus.subscribe(["insert"], handle)

        # Publish a dispatch
        await bus.publish("insert", DispatchMessage(payload=7))
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        prefix: Optional[str] = None,
        reconnect_interval: float = 1.0,
        reconnect_attempts: int = 5,
    ):
        self.redis_url = redis_url
        self.prefix = prefix
        self.reconnect_interval = reconnect_interval
        self.reconnect_attempts = reconnect_attempts
        self._client: Optional[redis.Redis] = None
        self._pubsub: Optional[redis.client.PubSub] = None
        self._handlers: Dict[str, List[MessageHandler]] = {}
        self._listener_task: Optional[asyncio.Task] = None
        self._running = False

    def _channel_key(self, channel: str) -> str:
        if self.prefix:
            return f"{self.prefix}:{channel}"
        return channel

    def _channel_name(self, key: str) -> str:
        if self.prefix and key.startswith(f"{self.prefix}:"):
            return key[len(self.prefix) + 1:]
        return key

    async def connect(self) -> None:
        """Connect to Redis."""
        self._client = create_redis_client(
            self.redis_url,
            self.reconnect_interval,
            self.reconnect_attempts,
        )
        await self._client.ping()

        self._pubsub = self._client.pubsub()
        self._running = True

        logger.info(f"Message bus connected to Redis at {self.redis_url}")

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        self._running = False

        if self._listener_task:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
            self._listener_task = None

        if self._pubsub:
            await self._pubsub.aclose()
            self._pubsub = None

        if self._client:
            await self._client.aclose()
            self._client = None

        self._handlers.clear()
        logger.info("Message bus disconnected")

    async def publish(self, channel: str, message: DispatchMessage) -> int:
        """Publish a message. Returns the number of Redis subscribers."""
        receivers = await self._client.publish(
            self._channel_key(channel),
            message.to_wire(),
        )
        if not receivers:
            logger.debug(f"No subscribers on {channel}, {message.payload} dropped")
        else:
            logger.debug(f"Published {message.payload} to {channel} ({receivers} receivers)")
        return int(receivers or 0)

    async def subscribe(
        self,
        channels: List[str],
        handler: MessageHandler,
    ) -> None:
        """Subscribe to channels with a handler."""
        keys = [self._channel_key(ch) for ch in channels]

        for channel in channels:
            if channel not in self._handlers:
                self._handlers[channel] = []
            self._handlers[channel].append(handler)

        await self._pubsub.subscribe(*keys)

        # Start listener if not already running
        if not self._listener_task or self._listener_task.done():
            self._listener_task = asyncio.create_task(self._listen())

        logger.info(f"Subscribed to channels: {channels}")

    async def unsubscribe(
        self,
        channels: List[str],
        handler: Optional[MessageHandler] = None,
    ) -> None:
        """Remove a handler, unsubscribing from Redis once none are left."""
        emptied = []
        for channel in channels:
            handlers = self._handlers.get(channel, [])
            if handler is not None and handler in handlers:
                handlers.remove(handler)
            if handler is None or not handlers:
                self._handlers.pop(channel, None)
                emptied.append(channel)

        if emptied and self._pubsub:
            await self._pubsub.unsubscribe(*[self._channel_key(ch) for ch in emptied])
            logger.info(f"Unsubscribed from channels: {emptied}")

    async def _dispatch(self, raw: Dict) -> None:
        """Decode a raw pub/sub message and hand it to local handlers."""
        key = raw["channel"]
        if isinstance(key, bytes):
            key = key.decode()
        channel = self._channel_name(key)

        try:
            message = DispatchMessage.from_wire(channel, raw["data"])
        except MessageDecodeError as e:
            logger.error(f"Failed to parse message: {e}")
            return

        for handler in list(self._handlers.get(channel, [])):
            await call_handler(handler, message)

    async def _listen(self) -> None:
        """Listen for messages and dispatch to handlers."""
        logger.info("Message listener started")

        while self._running:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0
                )

                if message and message["type"] == "message":
                    await self._dispatch(message)

            except asyncio.CancelledError:
                break
            except (RedisConnectionError, RedisTimeoutError) as e:
                # Channels are re-subscribed by redis-py on reconnect
                logger.warning(
                    f"Listener lost Redis ({e}), retrying in {self.reconnect_interval}s"
                )
                await asyncio.sleep(self.reconnect_interval)
            except Exception as e:
                logger.error(f"Listener error: {e}")
                await asyncio.sleep(self.reconnect_interval)

        logger.info("Message listener stopped")
