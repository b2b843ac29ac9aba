"""Health sweeper: periodic backstop reconciling declared status with the transport."""
from __future__ import annotations

import asyncio
import logging

from gateway_service.application.exceptions import TransportError
from gateway_service.application.ports.clock import Clock
from gateway_service.domain.value_objects.enums import SessionStatus
from gateway_service.services.supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)


class HealthSweeper:
    def __init__(
        self,
        session: ConnectionSupervisor,
        *,
        clock: Clock,
        interval: float = 120.0,
        reconnect_delay: float = 3.0,
    ) -> None:
        self._session = session
        self._clock = clock
        self._interval = interval
        self._reconnect_delay = reconnect_delay
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name="health-sweeper")
        logger.info("Health sweeper started (interval=%.0fs)", self._interval)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Health sweeper stopped")

    async def _run(self) -> None:
        while True:
            await self._clock.sleep(self._interval)
            try:
                await self.sweep()
            except Exception:
                logger.exception("Health sweep error")

    async def sweep(self) -> None:
        status = self._session.status
        if status is SessionStatus.CONNECTING:
            return

        if status is SessionStatus.DISCONNECTED:
            logger.info("Health sweep found session disconnected, initiating")
            try:
                await self._session.initiate()
            except TransportError as exc:
                logger.warning("Health sweep could not initiate session: %s", exc.detail)
            return

        handle = self._session.handle
        if handle is None or not handle.is_live():
            await self._session.force_disconnect(
                "socket closed without a close event", self._reconnect_delay,
            )
