from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gateway_service.api.middleware.correlation_id import CorrelationIdMiddleware
from gateway_service.api.v1.routers import health, logs, messages, session, ws
from gateway_service.api.v1.routers import settings as settings_router
from gateway_service.application.exceptions import (
    NotConnectedError,
    NotFoundError,
    StorageError,
    TransportError,
    ValidationError,
)
from gateway_service.config import settings
from gateway_service.container import build_gateway
from gateway_service.infrastructure.bus.redis_pubsub import RedisBroadcaster, RedisPubSubSubscriber

logger = logging.getLogger(__name__)


async def _on_pubsub_event(event_type: str, data: Any) -> None:
    """Relay a Redis Pub/Sub event to every local WS connection."""
    from gateway_service.api.v1.routers.ws import get_manager

    await get_manager().broadcast(event_type, data)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    subscriber = RedisPubSubSubscriber(
        app.state.redis,
        settings.REDIS_PUBSUB_CHANNEL,
        _on_pubsub_event,
    )
    await subscriber.start()
    app.state.pubsub_subscriber = subscriber

    gateway = build_gateway(
        settings,
        RedisBroadcaster(app.state.redis, settings.REDIS_PUBSUB_CHANNEL),
    )
    app.state.gateway = gateway
    await gateway.start()

    yield

    # The transport handle is closed, not logged out, so the pairing survives restarts.
    await gateway.stop()
    await subscriber.stop()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Messaging Gateway",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(session.router)
    app.include_router(messages.router)
    app.include_router(settings_router.router)
    app.include_router(logs.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(NotConnectedError)
    async def _not_connected(_req: Request, exc: NotConnectedError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})

    @app.exception_handler(TransportError)
    async def _transport(_req: Request, exc: TransportError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"detail": exc.detail})

    @app.exception_handler(StorageError)
    async def _storage(_req: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure: %s", exc.detail)
        return JSONResponse(status_code=500, content={"detail": exc.detail})
