from __future__ import annotations

import typing as t

import annotated_types as ant

from .base import BaseSettings

TTL = t.Annotated[int, ant.Gt(0)]


class CacheTTLSettings(BaseSettings):
    """Lifetime in seconds of each class of cached resource."""

    assignment: TTL = 300
    assignment_list: TTL = 60
    user_submission: TTL = 120
    user_status: TTL = 300
    leaderboard: TTL = 600
    submission: TTL = 120


class CacheSettings(BaseSettings):
    ttl: CacheTTLSettings = CacheTTLSettings()
