"""Shared test fixtures."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

from gateway_service.application.exceptions import NotConnectedError
from gateway_service.application.ports.backend import BackendReply
from gateway_service.application.ports.transport import EventSink, OutboundPayload, SendResult
from gateway_service.domain.entities.message import InboundMessage, MessageRecord, NewMessageFlag
from gateway_service.domain.events.transport import ConnectionOpened, TransportEvent
from gateway_service.domain.value_objects.enums import SessionStatus
from gateway_service.services.supervisor import ConnectionSupervisor

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks run until they block."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """Records every requested delay; sleepers wait until released."""

    def __init__(self) -> None:
        self.sleeps: list[float] = []
        self._waiters: list[tuple[float, asyncio.Future[None]]] = []

    def now(self) -> datetime:
        return FIXED_NOW

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        fut: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        entry = (seconds, fut)
        self._waiters.append(entry)
        try:
            await fut
        finally:
            if entry in self._waiters:
                self._waiters.remove(entry)

    def pending(self) -> list[float]:
        return [s for s, fut in self._waiters if not fut.done()]

    def release(self, seconds: float) -> int:
        released = 0
        for s, fut in list(self._waiters):
            if s == seconds and not fut.done():
                fut.set_result(None)
                released += 1
        return released


@dataclass
class FakeHandle:
    live: bool = True
    probe_results: list[Any] = field(default_factory=list)
    sent: list[tuple[str, OutboundPayload]] = field(default_factory=list)
    send_error: Exception | None = None
    next_ids: list[str] = field(default_factory=list)
    probes: int = 0
    logged_out: bool = False
    closed: bool = False

    async def send(self, address: str, payload: OutboundPayload) -> SendResult:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((address, payload))
        msg_id = self.next_ids.pop(0) if self.next_ids else f"out-{len(self.sent)}"
        return SendResult(id=msg_id)

    async def probe(self) -> bool | None:
        self.probes += 1
        result = self.probe_results.pop(0) if self.probe_results else True
        if isinstance(result, Exception):
            raise result
        return result

    def is_live(self) -> bool:
        return self.live

    async def logout(self) -> None:
        self.logged_out = True

    async def close(self) -> None:
        self.closed = True


@dataclass
class FakeTransport:
    open_error: Exception | None = None
    handles: list[FakeHandle] = field(default_factory=list)
    sinks: list[EventSink] = field(default_factory=list)

    @property
    def opens(self) -> int:
        return len(self.sinks)

    async def open(self, credentials_dir: Path, sink: EventSink) -> FakeHandle:
        if self.open_error is not None:
            raise self.open_error
        self.sinks.append(sink)
        handle = FakeHandle()
        self.handles.append(handle)
        return handle

    def emit(self, event: TransportEvent, *, generation: int = -1) -> None:
        self.sinks[generation](event)


@dataclass
class FakeCredentials:
    path: Path = Path("/tmp/gateway-test-sessions")
    clear_error: Exception | None = None
    attempts: int = 0
    cleared: int = 0

    async def clear(self) -> None:
        self.attempts += 1
        if self.clear_error is not None:
            raise self.clear_error
        self.cleared += 1


@dataclass
class FakeBroadcaster:
    statuses: list[SessionStatus] = field(default_factory=list)
    messages: list[MessageRecord] = field(default_factory=list)
    fail: bool = False

    async def publish_status(self, status: SessionStatus) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.statuses.append(status)

    async def publish_message(self, record: MessageRecord) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.messages.append(record)


@dataclass
class FakeActivityLog:
    entries: list[tuple[str, str, Any]] = field(default_factory=list)

    async def record(self, kind: str, address: str, content: Any) -> None:
        self.entries.append((kind, address, content))

    async def recent(self, limit: int = 100) -> list[dict[str, Any]]:
        return [
            {"type": kind, "number": address, "content": content}
            for kind, address, content in reversed(self.entries)
        ][:limit]

    def kinds(self) -> list[str]:
        return [kind for kind, _, _ in self.entries]


@dataclass
class InMemoryMessageStore:
    records: list[MessageRecord] = field(default_factory=list)

    async def create_if_not_exists(self, record: MessageRecord) -> tuple[MessageRecord, bool]:
        for existing in self.records:
            if existing.id == record.id:
                return existing, False
        self.records.append(record)
        return record, True

    async def get(self, record_id: str) -> MessageRecord | None:
        return next((r for r in self.records if r.id == record_id), None)

    async def list_all(self) -> list[MessageRecord]:
        return list(self.records)


@dataclass
class InMemoryFlagStore:
    flag: NewMessageFlag = field(default_factory=lambda: NewMessageFlag(False, None, None))

    async def mark(self, message_id: str, at: datetime) -> None:
        self.flag = NewMessageFlag(True, at, message_id)

    async def consume(self) -> NewMessageFlag:
        current = self.flag
        self.flag = NewMessageFlag(False, current.last_message_time, current.last_message_id)
        return current


@dataclass
class FakeBackend:
    reply: Any = field(default_factory=lambda: BackendReply(success=True, text="Hello!"))
    error: Exception | None = None
    calls: list[tuple[str, str, str, str | None]] = field(default_factory=list)

    async def respond(
        self, text: str, sender: str, instructions: str, model: str | None,
    ) -> Any:
        self.calls.append((text, sender, instructions, model))
        if self.error is not None:
            raise self.error
        return self.reply


@dataclass
class FakeSession:
    """Connected-or-not stand-in for ConnectionSupervisor on the send path."""

    handle: FakeHandle | None = field(default_factory=FakeHandle)
    status: SessionStatus = SessionStatus.CONNECTED

    def require_handle(self) -> FakeHandle:
        if self.status is not SessionStatus.CONNECTED or self.handle is None:
            raise NotConnectedError("Session is not connected")
        return self.handle


def make_inbound(
    *,
    message_id: str = "in-1",
    sender: str = "628111@net",
    content: str | None = "Hi",
) -> InboundMessage:
    return InboundMessage(id=message_id, sender=sender, content=content, received_at=FIXED_NOW)


@dataclass
class SupervisorRig:
    supervisor: ConnectionSupervisor
    transport: FakeTransport
    credentials: FakeCredentials
    broadcaster: FakeBroadcaster
    clock: FakeClock

    @property
    def handle(self) -> FakeHandle:
        return self.transport.handles[-1]

    async def connect(self) -> FakeHandle:
        await self.supervisor.initiate()
        self.transport.emit(ConnectionOpened())
        await self.supervisor.process_pending()
        await settle()
        return self.handle


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def rig(clock):
    transport = FakeTransport()
    credentials = FakeCredentials()
    broadcaster = FakeBroadcaster()
    supervisor = ConnectionSupervisor(
        transport, credentials, broadcaster, clock=clock,
    )
    yield SupervisorRig(supervisor, transport, credentials, broadcaster, clock)
    await supervisor.stop()
