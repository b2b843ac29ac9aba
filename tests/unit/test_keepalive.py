from __future__ import annotations

import pytest

from gateway_service.domain.value_objects.enums import SessionStatus
from tests.conftest import settle


@pytest.mark.asyncio
async def test_three_failures_force_single_disconnect_and_reconnect_at_5s(rig):
    handle = await rig.connect()
    keepalive = rig.supervisor.keepalive
    handle.probe_results = [RuntimeError("no pong")] * 3

    assert await keepalive.probe_once() is True
    assert keepalive.consecutive_failures == 1
    assert await keepalive.probe_once() is True
    assert keepalive.consecutive_failures == 2
    assert await keepalive.probe_once() is False

    assert rig.supervisor.status is SessionStatus.DISCONNECTED
    assert handle.closed is True
    await settle()
    assert rig.clock.pending() == [5.0]

    assert await keepalive.probe_once() is False
    assert rig.broadcaster.statuses.count(SessionStatus.DISCONNECTED) == 1


@pytest.mark.asyncio
async def test_success_resets_failure_count(rig):
    handle = await rig.connect()
    keepalive = rig.supervisor.keepalive
    handle.probe_results = [RuntimeError("a"), RuntimeError("b"), True, RuntimeError("c")]

    counts = []
    for _ in range(4):
        await keepalive.probe_once()
        counts.append(keepalive.consecutive_failures)

    assert counts == [1, 2, 0, 1]
    assert rig.supervisor.status is SessionStatus.CONNECTED


@pytest.mark.asyncio
async def test_false_probe_result_counts_as_failure(rig):
    handle = await rig.connect()
    handle.probe_results = [False]

    await rig.supervisor.keepalive.probe_once()

    assert rig.supervisor.keepalive.consecutive_failures == 1


@pytest.mark.asyncio
async def test_probe_skipped_while_socket_not_live(rig):
    handle = await rig.connect()
    handle.live = False

    assert await rig.supervisor.keepalive.probe_once() is True
    assert handle.probes == 0
    assert rig.supervisor.keepalive.consecutive_failures == 0


@pytest.mark.asyncio
async def test_probe_loop_runs_on_interval(rig):
    handle = await rig.connect()
    handle.probe_results = [RuntimeError("no pong")]

    rig.clock.release(45.0)
    await settle()

    assert handle.probes == 1
    assert rig.supervisor.keepalive.consecutive_failures == 1
    assert rig.clock.pending() == [45.0]


@pytest.mark.asyncio
async def test_loop_escalation_reconnects(rig):
    handle = await rig.connect()
    handle.probe_results = [RuntimeError("no pong")] * 3

    for _ in range(3):
        rig.clock.release(45.0)
        await settle()

    assert rig.supervisor.status is SessionStatus.DISCONNECTED
    assert not rig.supervisor.keepalive.running
    assert rig.clock.pending() == [5.0]

    rig.clock.release(5.0)
    await settle()

    assert rig.transport.opens == 2
    assert rig.supervisor.status is SessionStatus.CONNECTING
