"""Redis Pub/Sub: status and message broadcaster plus the subscriber background task."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

from gateway_service.domain.entities.message import MessageRecord
from gateway_service.domain.value_objects.enums import SessionStatus
from gateway_service.infrastructure.bus.serializer import deserialize_event, serialize_event

logger = logging.getLogger(__name__)

CONNECTION_STATUS = "connection_status"
NEW_MESSAGE = "new_message"


def record_payload(record: MessageRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "sender": record.sender,
        "recipient": record.recipient,
        "message": record.content,
        "timestamp": record.timestamp,
        "read": record.read,
        "outgoing": record.outgoing,
    }


class RedisBroadcaster:
    """Implements application.ports.broadcast.StatusBroadcaster and MessageBroadcaster."""

    def __init__(self, redis: aioredis.Redis, channel: str) -> None:
        self._redis = redis
        self._channel = channel

    async def publish(self, event_type: str, payload: Any) -> None:
        raw = serialize_event(event_type, payload)
        await self._redis.publish(self._channel, raw)

    async def publish_status(self, status: SessionStatus) -> None:
        await self.publish(CONNECTION_STATUS, status.value)

    async def publish_message(self, record: MessageRecord) -> None:
        await self.publish(NEW_MESSAGE, record_payload(record))


OnEventCallback = Callable[[str, Any], Coroutine[Any, Any, None]]


class RedisPubSubSubscriber:
    """Background task that listens to a Redis channel and dispatches events."""

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        callback: OnEventCallback,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._listen(), name="redis-pubsub-subscriber")
        logger.info("Redis Pub/Sub subscriber started on channel=%s", self._channel)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            logger.info("Redis Pub/Sub subscriber stopped")

    async def _listen(self) -> None:
        while True:
            try:
                await self._consume()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Pub/Sub subscription lost, resubscribing in 5s")
                await asyncio.sleep(5)

    async def _consume(self) -> None:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    event_type, data = deserialize_event(message["data"])
                    await self._callback(event_type, data)
                except Exception:
                    logger.exception("Error processing pubsub message")
        finally:
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()
