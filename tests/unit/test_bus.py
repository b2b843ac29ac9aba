from __future__ import annotations

import json

import pytest

from gateway_service.domain.entities.message import MessageRecord
from gateway_service.domain.value_objects.enums import SessionStatus
from gateway_service.infrastructure.bus.redis_pubsub import RedisBroadcaster
from gateway_service.infrastructure.bus.serializer import deserialize_event
from tests.conftest import FIXED_NOW


class FakeRedis:
    def __init__(self) -> None:
        self.published: list[tuple[str, str]] = []

    async def publish(self, channel: str, raw: str) -> int:
        self.published.append((channel, raw))
        return 1


@pytest.mark.asyncio
async def test_status_envelope():
    redis = FakeRedis()

    await RedisBroadcaster(redis, "gateway.fanout").publish_status(SessionStatus.CONNECTED)

    channel, raw = redis.published[0]
    assert channel == "gateway.fanout"
    assert deserialize_event(raw) == ("connection_status", "connected")


@pytest.mark.asyncio
async def test_message_envelope_serializes_timestamp():
    redis = FakeRedis()
    record = MessageRecord("in-1", "628111@s.whatsapp.net", "Hi", FIXED_NOW, False, False)

    await RedisBroadcaster(redis, "gateway.fanout").publish_message(record)

    envelope = json.loads(redis.published[0][1])
    assert envelope["type"] == "new_message"
    assert envelope["data"]["message"] == "Hi"
    assert envelope["data"]["timestamp"] == FIXED_NOW.isoformat()
