"""Per-client request throttling and the shared AI generation quota."""

from __future__ import annotations

import typing as t

import redis.asyncio as aioredis
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Object, Provider, Singleton

from marginalia.throttle import AIQuota, InMemoryAIQuota, InMemoryWindowLimiter, RedisAIQuota, RedisWindowLimiter, \
    WindowLimiter

from ..config.throttle import ThrottleSettings


def provide_limiter(
    client: aioredis.Redis | None,  # type: ignore[type-arg]
    settings: ThrottleSettings,
    namespace: str,
) -> WindowLimiter:
    """Uses RedisWindowLimiter if Redis is configured, otherwise InMemoryWindowLimiter."""
    if client is not None:
        return RedisWindowLimiter(client, settings.windows, namespace=namespace)
    return InMemoryWindowLimiter(settings.windows)


def provide_quota(
    client: aioredis.Redis | None,  # type: ignore[type-arg]
    settings: ThrottleSettings,
    namespace: str,
) -> AIQuota:
    quota = settings.ai_quota
    if client is not None:
        return RedisAIQuota(client, quota.limit, quota.window_seconds, namespace=namespace)
    return InMemoryAIQuota(quota.limit, quota.window_seconds)


class ThrottleContainer(DeclarativeContainer):
    config = Configuration()
    redis_client: Provider[t.Any] = Object()
    namespace: Provider[str] = Object()

    limiter: Provider[WindowLimiter] = Singleton(
        provide_limiter, client=redis_client, settings=config.as_(ThrottleSettings), namespace=namespace
    )
    quota: Provider[AIQuota] = Singleton(
        provide_quota, client=redis_client, settings=config.as_(ThrottleSettings), namespace=namespace
    )
