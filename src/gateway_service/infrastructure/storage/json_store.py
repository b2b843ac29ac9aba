"""JSON-file stores: append-only inbox and the new-message flag."""
from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from gateway_service.application.exceptions import StorageError
from gateway_service.domain.entities.message import MessageRecord, NewMessageFlag
from gateway_service.infrastructure.storage import mappers
from gateway_service.infrastructure.storage.models import (
    StoredFlag,
    StoredMessage,
    StoredMessageList,
)

logger = logging.getLogger(__name__)


def _atomic_write(path: Path, raw: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(raw)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class JsonMessageStore:
    """Implements application.repositories.message.MessageStore.

    Every mutation reads and rewrites the whole file under one lock, so the
    send path and the inbound path never lose each other's appends.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()

    def _read(self) -> list[StoredMessage]:
        if not self._path.exists():
            return []
        raw = self._path.read_bytes()
        if not raw.strip():
            return []
        try:
            return StoredMessageList.validate_json(raw)
        except PydanticValidationError as exc:
            raise StorageError(f"Inbox file {self._path} is corrupt: {exc}") from exc

    def _write(self, records: list[StoredMessage]) -> None:
        _atomic_write(self._path, StoredMessageList.dump_json(records, indent=2))

    async def create_if_not_exists(self, record: MessageRecord) -> tuple[MessageRecord, bool]:
        async with self._lock:
            records = await asyncio.to_thread(self._read)
            for existing in records:
                if existing.id == record.id:
                    logger.debug("Record %s already stored, skipping append", record.id)
                    return mappers.model_to_entity(existing), False
            records.append(mappers.entity_to_model(record))
            await asyncio.to_thread(self._write, records)
        return record, True

    async def get(self, record_id: str) -> MessageRecord | None:
        async with self._lock:
            records = await asyncio.to_thread(self._read)
        for model in records:
            if model.id == record_id:
                return mappers.model_to_entity(model)
        return None

    async def list_all(self) -> list[MessageRecord]:
        async with self._lock:
            records = await asyncio.to_thread(self._read)
        return [mappers.model_to_entity(m) for m in records]


class JsonFlagStore:
    """Single overwritten record used as a cheap polling signal."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()

    def _read(self) -> StoredFlag:
        if not self._path.exists():
            return StoredFlag()
        try:
            return StoredFlag.model_validate_json(self._path.read_bytes())
        except PydanticValidationError:
            logger.warning("Flag file %s unreadable, resetting", self._path)
            return StoredFlag()

    def _write(self, flag: StoredFlag) -> None:
        _atomic_write(self._path, flag.model_dump_json(by_alias=True, indent=2).encode())

    async def mark(self, message_id: str, at: datetime) -> None:
        flag = StoredFlag(has_new_messages=True, last_message_time=at, message_id=message_id)
        async with self._lock:
            await asyncio.to_thread(self._write, flag)

    async def consume(self) -> NewMessageFlag:
        async with self._lock:
            current = await asyncio.to_thread(self._read)
            if current.has_new_messages:
                reset = current.model_copy(update={"has_new_messages": False})
                await asyncio.to_thread(self._write, reset)
        return mappers.flag_to_entity(current)
