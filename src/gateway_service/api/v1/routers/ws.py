from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from gateway_service.api.deps import api_key_valid
from gateway_service.config import settings
from gateway_service.container import Gateway
from gateway_service.infrastructure.bus.redis_pubsub import CONNECTION_STATUS, record_payload
from gateway_service.infrastructure.bus.serializer import to_jsonable
from gateway_service.infrastructure.ws.manager import ConnectionManager
from gateway_service.infrastructure.ws.protocol import WsInbound
from gateway_service.services import message_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

INBOX_DATA = "inbox_data"

manager = ConnectionManager()


def get_manager() -> ConnectionManager:
    return manager


@router.websocket("/ws")
async def ws_dashboard(
    websocket: WebSocket,
    api_key: str | None = Query(None),
) -> None:
    if not api_key_valid(api_key):
        await websocket.close(code=4001, reason="Authentication failed")
        return

    gateway: Gateway = websocket.app.state.gateway
    await manager.connect(websocket)

    heartbeat_task = asyncio.create_task(_heartbeat(websocket), name="ws-heartbeat")
    try:
        await _send_inbox(websocket, gateway)
        await _send_status(websocket, gateway)
        await _read_loop(websocket, gateway)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error")
    finally:
        heartbeat_task.cancel()
        manager.disconnect(websocket)


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await manager.send(ws, "pong", {})
    except asyncio.CancelledError:
        pass
    except Exception as exc:
        logger.debug("WS heartbeat stopped: %s", exc)


async def _send_inbox(ws: WebSocket, gateway: Gateway) -> None:
    records = await message_service.list_inbox(gateway.store)
    await manager.send(ws, INBOX_DATA, to_jsonable([record_payload(r) for r in records]))


async def _send_status(ws: WebSocket, gateway: Gateway) -> None:
    await manager.send(ws, CONNECTION_STATUS, gateway.supervisor.status.value)


async def _read_loop(ws: WebSocket, gateway: Gateway) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except Exception:
            await manager.send(ws, "error", {"code": "invalid_payload"})
            continue

        if msg.type == "ping":
            await manager.send(ws, "pong", {})

        elif msg.type == "request_inbox":
            await _send_inbox(ws, gateway)

        elif msg.type == "request_status":
            await _send_status(ws, gateway)

        else:
            await manager.send(ws, "error", {"code": "unknown_type", "type": msg.type})
