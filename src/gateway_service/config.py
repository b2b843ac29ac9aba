from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATA_DIR: Path = Path("data")

    ADDRESS_SUFFIX: str = "@s.whatsapp.net"

    TRANSPORT_FACTORY: str | None = None

    AI_BACKENDS: dict[str, str] = {}
    AI_ENABLED: bool = False
    ACTIVE_AI_BACKEND: str = "gemini"
    AI_INSTRUCTIONS: str = "You are a helpful assistant."
    AI_BACKEND_INSTRUCTIONS: dict[str, str] = {}
    AI_BACKEND_MODELS: dict[str, str] = {}
    FALLBACK_AI_BACKEND: str | None = "gemini"

    AUTO_REPLY_ENABLED: bool = False
    AUTO_REPLY_MESSAGE: str = "This is an automated reply. We will get back to you soon."

    KEEPALIVE_INTERVAL_SECONDS: float = 45.0
    KEEPALIVE_MAX_FAILURES: int = 3
    KEEPALIVE_RECONNECT_DELAY: float = 5.0

    HEALTH_SWEEP_INTERVAL_SECONDS: float = 120.0
    HEALTH_RECONNECT_DELAY: float = 3.0

    QR_POLL_INTERVAL_SECONDS: float = 0.5
    QR_POLL_ATTEMPTS: int = 20

    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_PUBSUB_CHANNEL: str = "gateway.fanout"

    API_KEY: str = ""
    CORS_ORIGINS: list[str] = ["*"]
    WS_HEARTBEAT_SECONDS: int = 30
    MAX_MEDIA_BYTES: int = 5 * 1024 * 1024

    HOST: str = "0.0.0.0"
    PORT: int = 3002
    LOG_LEVEL: Literal["debug", "info", "warning", "error"] = "info"

    @property
    def sessions_dir(self) -> Path:
        return self.DATA_DIR / "sessions"

    @property
    def inbox_file(self) -> Path:
        return self.DATA_DIR / "inbox.json"

    @property
    def flag_file(self) -> Path:
        return self.DATA_DIR / "new_messages_flag.json"

    @property
    def activity_log_file(self) -> Path:
        return self.DATA_DIR / "logs" / "activity.log"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
