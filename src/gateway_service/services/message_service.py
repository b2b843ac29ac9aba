from __future__ import annotations

import logging
import re
from pathlib import PurePath

from gateway_service.application.exceptions import (
    NotConnectedError,
    StorageError,
    TransportError,
    ValidationError,
)
from gateway_service.application.ports.activity import ActivityLog
from gateway_service.application.ports.clock import Clock
from gateway_service.application.ports.transport import (
    MediaPayload,
    OutboundPayload,
    SendResult,
    TextPayload,
)
from gateway_service.application.repositories.message import FlagStore, MessageStore
from gateway_service.domain.entities.message import MessageRecord, NewMessageFlag
from gateway_service.domain.value_objects.constants import MEDIA_PLACEHOLDER, SELF_SENDER
from gateway_service.domain.value_objects.enums import MediaKind
from gateway_service.services.supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")

_MEDIA_TYPES: dict[str, tuple[MediaKind, str]] = {
    ".jpg": (MediaKind.IMAGE, "image/jpeg"),
    ".jpeg": (MediaKind.IMAGE, "image/jpeg"),
    ".png": (MediaKind.IMAGE, "image/png"),
    ".pdf": (MediaKind.DOCUMENT, "application/pdf"),
    ".doc": (MediaKind.DOCUMENT, "application/msword"),
    ".docx": (
        MediaKind.DOCUMENT,
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
}


def phone_digits(address: str) -> str:
    """Strip an address down to its digits: '628111@s.whatsapp.net' -> '628111'."""
    return _NON_DIGITS.sub("", address.partition("@")[0])


def format_address(recipient: str, suffix: str) -> str:
    digits = phone_digits(recipient)
    if not digits:
        raise ValidationError(f"Recipient {recipient!r} contains no digits")
    return f"{digits}{suffix}"


def resolve_media_type(filename: str) -> tuple[MediaKind, str]:
    ext = PurePath(filename).suffix.lower()
    try:
        return _MEDIA_TYPES[ext]
    except KeyError:
        raise ValidationError(f"Unsupported file type: {ext or filename!r}") from None


async def _send(
    session: ConnectionSupervisor,
    activity: ActivityLog,
    recipient: str,
    address: str,
    payload: OutboundPayload,
) -> SendResult:
    try:
        handle = session.require_handle()
        return await handle.send(address, payload)
    except NotConnectedError as exc:
        await activity.record("error", recipient, f"Failed to send message: {exc.detail}")
        raise
    except Exception as exc:
        logger.error("Send to %s failed: %s", address, exc)
        await activity.record("error", recipient, f"Failed to send message: {exc}")
        raise TransportError(f"Send to {address} failed: {exc}") from exc


async def _persist(store: MessageStore, record: MessageRecord) -> MessageRecord:
    try:
        stored, created = await store.create_if_not_exists(record)
    except (StorageError, OSError):
        logger.exception("Failed to record outgoing message %s", record.id)
        return record
    if not created:
        logger.debug("Outgoing message %s already recorded", record.id)
    return stored


async def send_text(
    session: ConnectionSupervisor,
    store: MessageStore,
    activity: ActivityLog,
    clock: Clock,
    recipient: str,
    text: str,
    *,
    address_suffix: str,
) -> MessageRecord:
    """Send text over the live transport and record it idempotently.

    Raises NotConnectedError when no session is connected at call time and
    TransportError when the transport rejects the send.
    """
    address = format_address(recipient, address_suffix)
    result = await _send(session, activity, recipient, address, TextPayload(text=text))
    await activity.record("sent", recipient, text)

    record = MessageRecord(
        id=result.id,
        sender=SELF_SENDER,
        recipient=address,
        content=text,
        timestamp=clock.now(),
        read=True,
        outgoing=True,
    )
    return await _persist(store, record)


async def send_media(
    session: ConnectionSupervisor,
    store: MessageStore,
    activity: ActivityLog,
    clock: Clock,
    recipient: str,
    data: bytes,
    filename: str,
    caption: str = "",
    *,
    address_suffix: str,
) -> MessageRecord:
    kind, mimetype = resolve_media_type(filename)
    address = format_address(recipient, address_suffix)
    payload = MediaPayload(
        kind=kind,
        data=data,
        mimetype=mimetype,
        filename=PurePath(filename).name,
        caption=caption,
    )
    result = await _send(session, activity, recipient, address, payload)
    await activity.record(
        "sent_media",
        recipient,
        {"type": kind.value, "filename": payload.filename, "caption": caption},
    )

    record = MessageRecord(
        id=result.id,
        sender=SELF_SENDER,
        recipient=address,
        content=caption or MEDIA_PLACEHOLDER,
        timestamp=clock.now(),
        read=True,
        outgoing=True,
    )
    return await _persist(store, record)


async def list_inbox(store: MessageStore) -> list[MessageRecord]:
    return await store.list_all()


async def list_contact_messages(store: MessageStore, phone_number: str) -> list[MessageRecord]:
    """Messages exchanged with one contact, in stored order."""
    phone = phone_digits(phone_number)
    if not phone:
        raise ValidationError("Phone number is required")
    return [
        r
        for r in await store.list_all()
        if (not r.outgoing and phone_digits(r.sender) == phone)
        or (r.outgoing and r.recipient is not None and phone_digits(r.recipient) == phone)
    ]


async def consume_new_message_flag(flags: FlagStore) -> NewMessageFlag:
    return await flags.consume()
