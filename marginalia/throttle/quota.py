"""Global cap on feedback generations.

One counter is shared by every generation unit in every process. Taking a
slot is a single atomic check-and-increment, so concurrent units can never
push usage past the limit. The window opens on the first acquisition after
the previous one ended.
"""

from __future__ import annotations

import abc
import datetime
import logging
import threading
import time
import typing as t

import redis.asyncio as redis

from .state import QuotaStatus

logger = logging.getLogger(__name__)

Clock = t.Callable[[], float]


class AIQuota(abc.ABC):
    def __init__(self, limit: int, window_seconds: int, clock: Clock = time.time) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock

    @abc.abstractmethod
    async def acquire(self) -> bool:
        """Take one slot; False when the quota is used up for this window."""
        ...

    @abc.abstractmethod
    async def status(self) -> QuotaStatus: ...

    @abc.abstractmethod
    async def reset(self) -> None:
        """Forget all usage, closing the current window."""
        ...

    def _timestamp(self, ts: float | None) -> datetime.datetime | None:
        return datetime.datetime.fromtimestamp(ts, datetime.UTC) if ts is not None else None


class InMemoryAIQuota(AIQuota):
    def __init__(self, limit: int, window_seconds: int, clock: Clock = time.time) -> None:
        super().__init__(limit, window_seconds, clock)
        self._used = 0
        self._window_end: float | None = None
        self._lock = threading.Lock()

    def _roll(self, now: float) -> None:
        if self._window_end is not None and now >= self._window_end:
            self._used = 0
            self._window_end = None

    async def acquire(self) -> bool:
        now = self._clock()
        with self._lock:
            self._roll(now)
            if self._used >= self.limit:
                logger.warning("AI quota exhausted", extra={"limit": self.limit, "reset_at": self._window_end})
                return False
            if self._window_end is None:
                self._window_end = now + self.window_seconds
            self._used += 1
            return True

    async def status(self) -> QuotaStatus:
        with self._lock:
            self._roll(self._clock())
            return QuotaStatus(limit=self.limit, used=self._used, reset_at=self._timestamp(self._window_end))

    async def reset(self) -> None:
        with self._lock:
            self._used = 0
            self._window_end = None


# KEYS[1] counter; ARGV[1] limit; ARGV[2] window in ms
# returns {acquired, used, pttl}
AcquireScript: t.Final[str] = """
local used = tonumber(redis.call('GET', KEYS[1]) or '0')
if used >= tonumber(ARGV[1]) then
    return {0, used, redis.call('PTTL', KEYS[1])}
end
used = redis.call('INCR', KEYS[1])
if used == 1 or redis.call('PTTL', KEYS[1]) < 0 then
    redis.call('PEXPIRE', KEYS[1], ARGV[2])
end
return {1, used, redis.call('PTTL', KEYS[1])}
"""


class RedisAIQuota(AIQuota):
    """The counter is one Redis key whose expiry is the end of the window."""

    def __init__(
        self,
        client: redis.Redis,  # type: ignore[type-arg]
        limit: int,
        window_seconds: int,
        namespace: str = "marginalia",
        clock: Clock = time.time,
    ) -> None:
        super().__init__(limit, window_seconds, clock)
        self._client = client
        self._key = f"{namespace}:quota:ai"
        self._acquire = client.register_script(AcquireScript)

    def _reset_at(self, pttl: int) -> datetime.datetime | None:
        return self._timestamp(self._clock() + pttl / 1000) if pttl > 0 else None

    async def acquire(self) -> bool:
        acquired, used, pttl = await self._acquire(keys=[self._key], args=[self.limit, self.window_seconds * 1000])
        if not acquired:
            logger.warning(
                "AI quota exhausted",
                extra={"limit": self.limit, "used": int(used), "reset_at": self._reset_at(int(pttl))},
            )
        return bool(acquired)

    async def status(self) -> QuotaStatus:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.get(self._key)
            pipe.pttl(self._key)
            used, pttl = await pipe.execute()
        return QuotaStatus(limit=self.limit, used=int(used or 0), reset_at=self._reset_at(int(pttl)))

    async def reset(self) -> None:
        await self._client.delete(self._key)
