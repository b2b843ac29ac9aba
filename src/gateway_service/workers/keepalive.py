"""Keep-alive supervisor: periodic liveness probe while the session is connected."""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from gateway_service.application.ports.clock import Clock
from gateway_service.domain.value_objects.enums import SessionStatus

if TYPE_CHECKING:
    from gateway_service.services.supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)


class KeepAliveSupervisor:
    """Probes the transport every ``interval`` seconds.

    After ``max_failures`` consecutive failed probes it forces the session
    down, asks for a reconnect after ``reconnect_delay`` and stops itself.
    Started/stopped by the ConnectionSupervisor on every transition into
    and out of Connected.
    """

    def __init__(
        self,
        session: ConnectionSupervisor,
        *,
        clock: Clock,
        interval: float = 45.0,
        max_failures: int = 3,
        reconnect_delay: float = 5.0,
    ) -> None:
        self._session = session
        self._clock = clock
        self._interval = interval
        self._max_failures = max_failures
        self._reconnect_delay = reconnect_delay
        self._task: asyncio.Task[None] | None = None
        self.consecutive_failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def restart(self) -> None:
        self.stop()
        self.consecutive_failures = 0
        self._task = asyncio.create_task(self._run(), name="session-keepalive")
        logger.debug("Keep-alive started (interval=%.0fs)", self._interval)

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        # When the probe loop itself escalates it is already on its way out.
        if task is not asyncio.current_task():
            task.cancel()
        logger.debug("Keep-alive stopped")

    async def _run(self) -> None:
        while True:
            await self._clock.sleep(self._interval)
            if not await self.probe_once():
                return

    async def probe_once(self) -> bool:
        """Run one probe. Returns False once the loop should end."""
        if self._session.status is not SessionStatus.CONNECTED:
            return False

        handle = self._session.handle
        if handle is None or not handle.is_live():
            logger.info("Transport socket not open, skipping keep-alive probe")
            return True

        try:
            result = await handle.probe()
            if result is False:
                raise RuntimeError("probe reported failure")
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.consecutive_failures += 1
            logger.warning(
                "Keep-alive probe failed (attempt %d/%d): %s",
                self.consecutive_failures, self._max_failures, exc,
            )
            if self.consecutive_failures >= self._max_failures:
                logger.error("Too many consecutive keep-alive failures, forcing reconnect")
                self.stop()
                await self._session.force_disconnect(
                    f"{self.consecutive_failures} consecutive keep-alive failures",
                    self._reconnect_delay,
                )
                return False
            return True

        if self.consecutive_failures:
            logger.info("Keep-alive recovered after %d failures", self.consecutive_failures)
        self.consecutive_failures = 0
        return True
