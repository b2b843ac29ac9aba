from __future__ import annotations

import pytest

from gateway_service.application.policies.reconnection import (
    BAD_SESSION_DELAY,
    CONNECTION_REPLACED_DELAY,
    DEFAULT_DELAY,
    NETWORK_DELAY,
    classify_disconnect,
)
from gateway_service.domain.events.transport import DisconnectEvent
from gateway_service.domain.value_objects.enums import DisconnectClass, DisconnectReason


@pytest.mark.parametrize(
    "reason_code",
    [None, DisconnectReason.BAD_SESSION, DisconnectReason.CONNECTION_REPLACED, 428, 515],
)
def test_logged_out_never_reconnects_and_clears(reason_code):
    decision = classify_disconnect(
        DisconnectEvent(reason_code=reason_code, message="timed out", logged_out=True),
    )

    assert decision.classification is DisconnectClass.PERMANENT
    assert decision.reconnect is False
    assert decision.delay is None
    assert decision.clear_credentials is True


def test_device_removed_is_permanent():
    decision = classify_disconnect(DisconnectEvent(reason_code=503, device_removed=True))

    assert decision.reconnect is False
    assert decision.clear_credentials is True


def test_logged_out_reason_code_is_permanent():
    decision = classify_disconnect(DisconnectEvent(reason_code=DisconnectReason.LOGGED_OUT))

    assert decision.classification is DisconnectClass.PERMANENT
    assert decision.reconnect is False


def test_bad_session_reconnects_after_2s_and_clears():
    decision = classify_disconnect(DisconnectEvent(reason_code=DisconnectReason.BAD_SESSION))

    assert decision.classification is DisconnectClass.TRANSIENT_CORRUPT
    assert decision.reconnect is True
    assert decision.delay == BAD_SESSION_DELAY == 2.0
    assert decision.clear_credentials is True


def test_connection_replaced_waits_10s_and_keeps_credentials():
    decision = classify_disconnect(
        DisconnectEvent(reason_code=DisconnectReason.CONNECTION_REPLACED),
    )

    assert decision.classification is DisconnectClass.TRANSIENT_CONFLICT
    assert decision.delay == CONNECTION_REPLACED_DELAY == 10.0
    assert decision.clear_credentials is False


@pytest.mark.parametrize(
    "event",
    [
        DisconnectEvent(reason_code=DisconnectReason.CONNECTION_CLOSED),
        DisconnectEvent(reason_code=DisconnectReason.CONNECTION_LOST),
        DisconnectEvent(reason_code=None, message="Connection Timed Out"),
    ],
)
def test_network_failures_reconnect_after_3s(event):
    decision = classify_disconnect(event)

    assert decision.classification is DisconnectClass.TRANSIENT_NETWORK
    assert decision.delay == NETWORK_DELAY == 3.0
    assert decision.clear_credentials is False


@pytest.mark.parametrize("reason_code", [None, DisconnectReason.RESTART_REQUIRED, 999])
def test_unknown_reasons_reconnect_after_default_delay(reason_code):
    decision = classify_disconnect(DisconnectEvent(reason_code=reason_code, message="stream error"))

    assert decision.classification is DisconnectClass.TRANSIENT_UNKNOWN
    assert decision.reconnect is True
    assert decision.delay == DEFAULT_DELAY == 5.0
    assert decision.clear_credentials is False
