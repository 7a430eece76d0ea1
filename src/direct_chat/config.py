from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_DB: str
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432

    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 300
    STORAGE_TIMEOUT_SECONDS: float = 5.0

    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_PUBSUB_CHANNEL: str = "direct_chat.fanout"
    FANOUT_BACKEND: Literal["memory", "redis"] = "redis"

    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_TTL_SECONDS: int = 7 * 24 * 3600

    PASSWORD_HASH_ITERATIONS: int = 390_000

    CORS_ORIGINS: list[str] = ["http://localhost:8081"]

    MESSAGE_MAX_LENGTH: int = 4000
    CHAT_RESOLVE_ATTEMPTS: int = 3

    WS_HEARTBEAT_SECONDS: int = 30
    WS_IDLE_TIMEOUT_SECONDS: int = 90
    WS_SEND_TIMEOUT_SECONDS: float = 10.0
    WS_QUEUE_SIZE: int = 256

    HOST: str = "0.0.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    @property
    def database_url(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.POSTGRES_DB}"
        )

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]
