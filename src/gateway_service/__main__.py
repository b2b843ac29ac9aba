"""Entrypoint: python -m gateway_service"""
from __future__ import annotations

import logging

import uvicorn

from gateway_service.api.middleware.correlation_id import RequestIdLogFilter
from gateway_service.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s]: %(message)s"


def configure_logging() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)
    for handler in logging.getLogger().handlers:
        handler.addFilter(RequestIdLogFilter())


def main() -> None:
    configure_logging()
    uvicorn.run(
        "gateway_service.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
        log_config=None,
    )


if __name__ == "__main__":
    main()
