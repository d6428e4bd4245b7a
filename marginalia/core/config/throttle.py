from __future__ import annotations

import typing as t

import annotated_types as ant
import pydantic as p

from .base import BaseSettings


class WindowSettings(BaseSettings):
    limit: t.Annotated[int, ant.Gt(0)]
    window_seconds: t.Annotated[int, ant.Gt(0)]


def default_windows() -> dict[str, WindowSettings]:
    return {
        "general": WindowSettings(limit=100, window_seconds=15 * 60),
        "submission": WindowSettings(limit=10, window_seconds=60 * 60),
        "feedback": WindowSettings(limit=20, window_seconds=10 * 60),
        "query": WindowSettings(limit=30, window_seconds=60),
        "auth": WindowSettings(limit=5, window_seconds=15 * 60),
    }


class ThrottleSettings(BaseSettings):
    windows: dict[str, WindowSettings] = p.Field(default_factory=default_windows)
    ai_quota: WindowSettings = WindowSettings(limit=100, window_seconds=60 * 60)
