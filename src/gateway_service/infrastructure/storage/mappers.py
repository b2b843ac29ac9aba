from __future__ import annotations

from gateway_service.domain.entities.message import MessageRecord, NewMessageFlag
from gateway_service.infrastructure.storage.models import StoredFlag, StoredMessage


def model_to_entity(model: StoredMessage) -> MessageRecord:
    return MessageRecord(
        id=model.id,
        sender=model.sender,
        content=model.message,
        timestamp=model.timestamp,
        read=model.read,
        outgoing=model.outgoing,
        recipient=model.recipient,
    )


def entity_to_model(entity: MessageRecord) -> StoredMessage:
    return StoredMessage(
        id=entity.id,
        sender=entity.sender,
        message=entity.content,
        timestamp=entity.timestamp,
        read=entity.read,
        outgoing=entity.outgoing,
        recipient=entity.recipient,
    )


def flag_to_entity(model: StoredFlag) -> NewMessageFlag:
    return NewMessageFlag(
        has_new_messages=model.has_new_messages,
        last_message_time=model.last_message_time,
        last_message_id=model.message_id,
    )
