"""Wires the session supervisor, timers, dispatch pipeline and stores together."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from gateway_service.application.dto.auto_response import AutoResponseSettings
from gateway_service.application.exceptions import TransportError
from gateway_service.application.ports.activity import ActivityLog
from gateway_service.application.ports.backend import ResponseBackend
from gateway_service.application.ports.broadcast import Broadcaster
from gateway_service.application.ports.clock import Clock, SystemClock
from gateway_service.application.ports.transport import EventSink, Transport, TransportHandle
from gateway_service.application.repositories.message import FlagStore, MessageStore
from gateway_service.config import Settings
from gateway_service.infrastructure.activity.jsonl_log import JsonlActivityLog
from gateway_service.infrastructure.credentials.session_dir import SessionDirectory
from gateway_service.infrastructure.plugins import build_from_path
from gateway_service.infrastructure.storage.json_store import JsonFlagStore, JsonMessageStore
from gateway_service.services.dispatch import DispatchPipeline
from gateway_service.services.supervisor import ConnectionSupervisor
from gateway_service.workers.health_sweeper import HealthSweeper

logger = logging.getLogger(__name__)


class UnconfiguredTransport:
    """Transport used when TRANSPORT_FACTORY is unset; every open fails."""

    async def open(self, credentials_dir: Path, sink: EventSink) -> TransportHandle:
        raise TransportError("No transport configured (set TRANSPORT_FACTORY)")


@dataclass
class Gateway:
    supervisor: ConnectionSupervisor
    sweeper: HealthSweeper
    pipeline: DispatchPipeline
    store: MessageStore
    flags: FlagStore
    activity: ActivityLog
    clock: Clock
    address_suffix: str

    async def start(self) -> None:
        await self.supervisor.start()
        await self.sweeper.start()
        try:
            await self.supervisor.initiate()
        except TransportError as exc:
            logger.error("Initial session start failed: %s", exc.detail)

    async def stop(self) -> None:
        await self.sweeper.stop()
        await self.supervisor.stop()


def load_backends(settings: Settings) -> dict[str, ResponseBackend]:
    backends: dict[str, ResponseBackend] = {}
    for name, path in settings.AI_BACKENDS.items():
        try:
            backends[name] = build_from_path(path)
        except Exception:
            logger.exception("Failed to load AI backend %s from %s", name, path)
    if backends:
        logger.info("Loaded AI backends: %s", ", ".join(sorted(backends)))
    return backends


def load_transport(settings: Settings) -> Transport:
    if not settings.TRANSPORT_FACTORY:
        logger.warning("TRANSPORT_FACTORY is not set; the session cannot connect")
        return UnconfiguredTransport()
    return build_from_path(settings.TRANSPORT_FACTORY)


def build_gateway(
    settings: Settings,
    broadcaster: Broadcaster,
    *,
    transport: Transport | None = None,
    backends: dict[str, ResponseBackend] | None = None,
    clock: Clock | None = None,
) -> Gateway:
    clock = clock or SystemClock()
    supervisor = ConnectionSupervisor(
        transport or load_transport(settings),
        SessionDirectory(settings.sessions_dir),
        broadcaster,
        clock=clock,
        keepalive_interval=settings.KEEPALIVE_INTERVAL_SECONDS,
        keepalive_max_failures=settings.KEEPALIVE_MAX_FAILURES,
        keepalive_reconnect_delay=settings.KEEPALIVE_RECONNECT_DELAY,
        qr_poll_interval=settings.QR_POLL_INTERVAL_SECONDS,
        qr_poll_attempts=settings.QR_POLL_ATTEMPTS,
    )
    store = JsonMessageStore(settings.inbox_file)
    flags = JsonFlagStore(settings.flag_file)
    activity = JsonlActivityLog(settings.activity_log_file)
    pipeline = DispatchPipeline(
        supervisor,
        store,
        flags,
        activity,
        broadcaster,
        backends if backends is not None else load_backends(settings),
        AutoResponseSettings.from_settings(settings),
        clock,
        address_suffix=settings.ADDRESS_SUFFIX,
    )
    supervisor.set_message_handler(pipeline.dispatch)
    sweeper = HealthSweeper(
        supervisor,
        clock=clock,
        interval=settings.HEALTH_SWEEP_INTERVAL_SECONDS,
        reconnect_delay=settings.HEALTH_RECONNECT_DELAY,
    )
    return Gateway(
        supervisor=supervisor,
        sweeper=sweeper,
        pipeline=pipeline,
        store=store,
        flags=flags,
        activity=activity,
        clock=clock,
        address_suffix=settings.ADDRESS_SUFFIX,
    )
