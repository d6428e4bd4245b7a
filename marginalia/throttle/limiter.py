"""Per-client fixed-window request throttling.

Windows are aligned to multiples of their length since the epoch, so every
process agrees on where a window starts without coordinating. A client gets
`limit` hits per scope per window; the counter for a window lives under
`{scope}:{client}:{window_index}` and expires with the window.
"""

from __future__ import annotations

import abc
import datetime
import logging
import math
import threading
import time
import typing as t

import redis.asyncio as redis
from redis.exceptions import RedisError

from marginalia.core.config.throttle import WindowSettings
from marginalia.errors import RateLimitExceeded

from .state import WindowState

logger = logging.getLogger(__name__)

Clock = t.Callable[[], float]


class WindowLimiter(abc.ABC):
    def __init__(self, windows: t.Mapping[str, WindowSettings], clock: Clock = time.time) -> None:
        self.windows = dict(windows)
        self._clock = clock

    async def hit(self, scope: str, client_id: str) -> WindowState:
        """Count one request by `client_id` against `scope`.

        Raises:
            RateLimitExceeded: if the client has used up the current window
            KeyError: if `scope` is not configured
        """
        window = self.windows[scope]
        now = self._clock()
        index = int(now // window.window_seconds)
        window_end = (index + 1) * window.window_seconds
        count = await self._incr(f"{scope}:{client_id}:{index}", window.window_seconds)

        if count > window.limit:
            retry_after = max(1, math.ceil(window_end - now))
            logger.info(
                "rate limit exceeded",
                extra={"scope": scope, "client_id": client_id, "limit": window.limit, "retry_after": retry_after},
            )
            raise RateLimitExceeded(scope, window.limit, retry_after)

        return WindowState(
            limit=window.limit,
            remaining=window.limit - count,
            reset_at=datetime.datetime.fromtimestamp(window_end, datetime.UTC),
        )

    @abc.abstractmethod
    async def _incr(self, key: str, ttl: int) -> int:
        """Increment the counter at `key`, expiring it after `ttl` seconds; return the new count."""
        ...


class InMemoryWindowLimiter(WindowLimiter):
    """Counters in a dict, for a single process and for tests."""

    prune_interval: t.ClassVar[float] = 60.0

    def __init__(self, windows: t.Mapping[str, WindowSettings], clock: Clock = time.time) -> None:
        super().__init__(windows, clock)
        self._counters: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._next_prune = 0.0

    async def _incr(self, key: str, ttl: int) -> int:
        now = self._clock()
        with self._lock:
            if now >= self._next_prune:
                self._counters = {k: v for k, v in self._counters.items() if v[1] > now}
                self._next_prune = now + self.prune_interval
            count, expires_at = self._counters.get(key, (0, now + ttl))
            if expires_at <= now:
                count, expires_at = 0, now + ttl
            count += 1
            self._counters[key] = (count, expires_at)
        return count


class RedisWindowLimiter(WindowLimiter):
    """Counters in Redis, shared by every worker process.

    When Redis cannot be reached requests are let through.
    """

    def __init__(
        self,
        client: redis.Redis,  # type: ignore[type-arg]
        windows: t.Mapping[str, WindowSettings],
        namespace: str = "marginalia",
        clock: Clock = time.time,
    ) -> None:
        super().__init__(windows, clock)
        self._client = client
        self._prefix = f"{namespace}:throttle:"

    async def _incr(self, key: str, ttl: int) -> int:
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.incr(self._prefix + key)
                pipe.expire(self._prefix + key, ttl)
                count, _ = await pipe.execute()
        except RedisError:
            logger.warning("rate limit counter unavailable, allowing request", exc_info=True, extra={"key": key})
            return 0
        return int(count)
