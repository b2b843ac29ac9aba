"""Connection lifecycle supervisor: the single owner of session state."""
from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Any, Awaitable, Callable

from gateway_service.application.exceptions import NotConnectedError, TransportError
from gateway_service.application.policies.reconnection import classify_disconnect
from gateway_service.application.ports.broadcast import StatusBroadcaster
from gateway_service.application.ports.clock import Clock, SystemClock
from gateway_service.application.ports.credentials import CredentialStore
from gateway_service.application.ports.transport import Transport, TransportHandle
from gateway_service.domain.entities.message import InboundMessage
from gateway_service.domain.entities.session import SessionState
from gateway_service.domain.events.transport import (
    ConnectionClosed,
    ConnectionOpened,
    CredentialChallenge,
    MessageReceived,
    TransportEvent,
)
from gateway_service.domain.value_objects.enums import SessionStatus
from gateway_service.workers.keepalive import KeepAliveSupervisor

logger = logging.getLogger(__name__)

MessageHandler = Callable[[InboundMessage], Awaitable[None]]


class ConnectionSupervisor:
    """Keeps one logical session alive across transport reconnections.

    Transport callbacks only enqueue events; the control loop started by
    ``start()`` applies them one at a time, so status has a single writer.
    Every transport instance gets a generation number and events from a
    superseded generation are dropped.
    """

    def __init__(
        self,
        transport: Transport,
        credentials: CredentialStore,
        broadcaster: StatusBroadcaster,
        *,
        clock: Clock | None = None,
        keepalive_interval: float = 45.0,
        keepalive_max_failures: int = 3,
        keepalive_reconnect_delay: float = 5.0,
        qr_poll_interval: float = 0.5,
        qr_poll_attempts: int = 20,
    ) -> None:
        self._transport = transport
        self._credentials = credentials
        self._broadcaster = broadcaster
        self._clock = clock or SystemClock()
        self._qr_poll_interval = qr_poll_interval
        self._qr_poll_attempts = qr_poll_attempts

        self._state = SessionState()
        self._handle: TransportHandle | None = None
        self._events: asyncio.Queue[tuple[int, TransportEvent]] = asyncio.Queue()
        self._lifecycle_lock = asyncio.Lock()
        self._loop_task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._clear_pending = False
        self._message_handler: MessageHandler | None = None

        self.keepalive = KeepAliveSupervisor(
            self,
            clock=self._clock,
            interval=keepalive_interval,
            max_failures=keepalive_max_failures,
            reconnect_delay=keepalive_reconnect_delay,
        )

    # -- read side -------------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._state.status

    @property
    def qr_code(self) -> str | None:
        return self._state.qr

    @property
    def handle(self) -> TransportHandle | None:
        return self._handle

    def require_handle(self) -> TransportHandle:
        """Return the live handle or raise NotConnectedError.

        Callers that suspended must call this again after resuming.
        """
        if self._state.status is not SessionStatus.CONNECTED or self._handle is None:
            raise NotConnectedError("Session is not connected")
        return self._handle

    def set_message_handler(self, handler: MessageHandler) -> None:
        self._message_handler = handler

    # -- lifecycle -------------------------------------------------------

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._run(), name="session-supervisor")
            logger.info("Session supervisor started")

    async def stop(self) -> None:
        self.keepalive.stop()
        tasks = [t for t in (self._loop_task, *self._tasks) if t is not None]
        self._loop_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        handle = self._detach_handle()
        if handle is not None:
            await self._close_quietly(handle)
        logger.info("Session supervisor stopped")

    async def initiate(self) -> bool:
        """Open a new transport. Only valid while disconnected.

        Returns False without side effects from any other status.
        """
        async with self._lifecycle_lock:
            if self._state.status is not SessionStatus.DISCONNECTED:
                logger.debug("initiate() ignored, session is %s", self._state.status)
                return False

            await self._clear_credentials_if_pending()
            self._state.generation += 1
            generation = self._state.generation
            await self._set_status(SessionStatus.CONNECTING)
            try:
                handle = await self._transport.open(
                    self._credentials.path, partial(self._emit, generation),
                )
            except Exception as exc:
                logger.error("Transport open failed: %s", exc)
                if self._state.generation == generation:
                    await self._set_status(SessionStatus.DISCONNECTED)
                raise TransportError(f"Failed to open transport: {exc}") from exc

            if self._state.generation != generation:
                logger.info("Transport generation %d superseded while opening", generation)
                await self._close_quietly(handle)
                return False
            self._handle = handle
            logger.info("Transport generation %d opened, awaiting handshake", generation)
            return True

    async def get_qr_code(self) -> str | None:
        """Return the pending pairing token, waiting a bounded time for one."""
        if self._state.qr:
            return self._state.qr
        if self._state.status is SessionStatus.CONNECTED:
            return None
        if self._state.status is SessionStatus.DISCONNECTED:
            logger.info("No QR code available, initiating session to get one")
            try:
                await self.initiate()
            except TransportError:
                logger.exception("Could not initiate session for QR code")
                return self._state.qr
            for _ in range(self._qr_poll_attempts):
                if self._state.qr:
                    break
                await self._clock.sleep(self._qr_poll_interval)
        return self._state.qr

    async def logout(self) -> None:
        """Log the session out and wipe credentials. Never reconnects."""
        async with self._lifecycle_lock:
            handle = self._handle
            if handle is None:
                raise NotConnectedError("No active session to log out")
            self.keepalive.stop()
            self._detach_handle()
            self._state.qr = None
            await self._set_status(SessionStatus.DISCONNECTED)
            try:
                await handle.logout()
            except Exception:
                logger.warning("Transport logout failed, clearing session anyway", exc_info=True)
            self._clear_pending = True
            await self._clear_credentials_if_pending()
            logger.info("Logged out and cleared session")

    async def force_disconnect(self, reason: str, reconnect_delay: float) -> bool:
        """Drop a session believed dead without waiting for a close event.

        No-op unless currently connected, so concurrent detectors trigger at most once.
        """
        if self._state.status is not SessionStatus.CONNECTED:
            return False
        logger.warning("Forcing disconnect: %s (reconnect in %.1fs)", reason, reconnect_delay)
        handle = self._detach_handle()
        self.keepalive.stop()
        await self._set_status(SessionStatus.DISCONNECTED)
        if handle is not None:
            await self._close_quietly(handle)
        self.schedule_reconnect(reconnect_delay)
        return True

    def schedule_reconnect(self, delay: float) -> asyncio.Task[None]:
        task = asyncio.create_task(self._reconnect_after(delay), name=f"reconnect-{delay:g}s")
        self._track(task)
        logger.info("Reconnect scheduled in %.1fs", delay)
        return task

    # -- event channel ---------------------------------------------------

    def _emit(self, generation: int, event: TransportEvent) -> None:
        self._events.put_nowait((generation, event))

    async def process_pending(self) -> None:
        """Apply every queued event without blocking."""
        while not self._events.empty():
            generation, event = self._events.get_nowait()
            await self._apply(generation, event)

    async def _run(self) -> None:
        while True:
            generation, event = await self._events.get()
            try:
                await self._apply(generation, event)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Error applying transport event %s", type(event).__name__)

    async def _apply(self, generation: int, event: TransportEvent) -> None:
        if generation != self._state.generation:
            logger.debug(
                "Dropping %s from stale transport generation %d",
                type(event).__name__, generation,
            )
            return

        if isinstance(event, CredentialChallenge):
            await self._on_challenge(event)
        elif isinstance(event, ConnectionOpened):
            await self._on_opened()
        elif isinstance(event, ConnectionClosed):
            await self._on_closed(event)
        elif isinstance(event, MessageReceived):
            self._on_message(event)
        else:
            logger.debug("Ignoring unknown transport event: %r", event)

    async def _on_challenge(self, event: CredentialChallenge) -> None:
        self._state.qr = event.token
        logger.info("Pairing QR code received")
        await self._set_status(SessionStatus.CONNECTING, force_broadcast=True)

    async def _on_opened(self) -> None:
        self._state.qr = None
        await self._set_status(SessionStatus.CONNECTED)
        self.keepalive.restart()
        logger.info("Session connected")

    async def _on_closed(self, event: ConnectionClosed) -> None:
        disconnect = event.disconnect
        decision = classify_disconnect(disconnect)
        # Nothing below may suspend before status and the pending clear are recorded.
        self._detach_handle()
        self.keepalive.stop()
        if decision.clear_credentials:
            self._clear_pending = True
        await self._set_status(SessionStatus.DISCONNECTED)

        logger.warning(
            "Connection closed: code=%s message=%r class=%s reconnect=%s delay=%s clear=%s",
            disconnect.reason_code, disconnect.message, decision.classification,
            decision.reconnect, decision.delay, decision.clear_credentials,
        )
        if decision.clear_credentials:
            async with self._lifecycle_lock:
                await self._clear_credentials_if_pending()
        if decision.reconnect and decision.delay is not None:
            self.schedule_reconnect(decision.delay)
        else:
            logger.warning("Disconnected permanently; waiting for manual re-initiation")

    def _on_message(self, event: MessageReceived) -> None:
        if event.from_self or not event.is_notification:
            return
        if self._message_handler is None:
            logger.warning("Inbound message %s dropped: no dispatcher", event.message.id)
            return
        self._track(
            asyncio.create_task(
                self._dispatch(self._message_handler, event.message),
                name=f"dispatch-{event.message.id}",
            )
        )

    # -- helpers ---------------------------------------------------------

    async def _dispatch(self, handler: MessageHandler, message: InboundMessage) -> None:
        try:
            await handler(message)
        except Exception:
            logger.exception("Dispatch failed for message %s from %s", message.id, message.sender)

    async def _reconnect_after(self, delay: float) -> None:
        await self._clock.sleep(delay)
        if self._state.status is not SessionStatus.DISCONNECTED:
            logger.info("Reconnect cancelled: session is %s", self._state.status)
            return
        logger.info("Executing reconnection")
        try:
            await self.initiate()
        except TransportError:
            logger.exception("Reconnection failed")

    async def _set_status(self, status: SessionStatus, *, force_broadcast: bool = False) -> None:
        changed = self._state.status is not status
        self._state.status = status
        if changed or force_broadcast:
            try:
                await self._broadcaster.publish_status(status)
            except Exception:
                logger.warning("Status broadcast failed for %s", status, exc_info=True)

    async def _clear_credentials_if_pending(self) -> None:
        # Caller holds _lifecycle_lock.
        if self._clear_pending:
            self._clear_pending = False
            try:
                await self._credentials.clear()
            except Exception as exc:
                self._clear_pending = True
                logger.error("Clearing credentials failed, will retry on next initiate: %s", exc)

    def _detach_handle(self) -> TransportHandle | None:
        handle, self._handle = self._handle, None
        self._state.generation += 1
        return handle

    async def _close_quietly(self, handle: TransportHandle) -> None:
        try:
            await handle.close()
        except Exception:
            logger.debug("Closing detached transport failed", exc_info=True)

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
