from __future__ import annotations

import typing as t
from pathlib import Path

import pydantic as p

from .base import BaseSettings


class StorageSettings(BaseSettings):
    persistent: PersistentSettings
    cache: CacheBackendSettings = p.Field(default_factory=lambda: CacheBackendSettings())


class PersistentSettings(BaseSettings):
    """Either a postgresql section or a complete SQLAlchemy URL.

    The URL wins when both are given; tests use it to point at sqlite.
    """

    postgresql: PostgresqlSettings | None = None
    url: str | None = None
    echo: bool = False

    @p.model_validator(mode="after")
    def require_target(self) -> t.Self:
        if self.postgresql is None and self.url is None:
            raise ValueError("one of storage.persistent.postgresql or storage.persistent.url is required")
        return self


class PostgresqlSettings(BaseSettings):
    host: p.IPvAnyAddress | str | None = None
    port: int = 5432
    database: str
    driver: t.Literal["postgresql+psycopg"] = "postgresql+psycopg"


class CacheBackendSettings(BaseSettings):
    """Shared key-value backend for the read cache and the throttle counters.

    Without a redis section everything is kept in process memory, which is
    only correct for a single worker process.
    """

    redis: RedisSettings | None = None
    namespace: str = "marginalia"


class RedisSettings(BaseSettings):
    """Redis connection settings.

    Supports either Unix socket or TCP connection.
    If socket_path is set, it takes precedence over host/port.
    """

    socket_path: Path | None = None
    host: str = "localhost"
    port: int = 6379
    database: int = 0
