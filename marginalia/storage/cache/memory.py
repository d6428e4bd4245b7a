"""In-process cache store."""

from __future__ import annotations

import logging
import threading
import time
import typing as t

import marginalia.lib.json as json

logger = logging.getLogger(__name__)


class InMemoryCacheStore(object):
    """Dict-backed cache for a single process, and for tests.

    Values are kept serialized so that callers get a fresh copy on every read,
    just as they would from Redis. Expired entries are dropped when read and
    when a prefix scan passes over them.
    """

    def __init__(self, clock: t.Callable[[], float] = time.monotonic) -> None:
        self._entries: dict[str, tuple[float, str]] = {}
        self._clock = clock
        self._lock = threading.Lock()

    async def get(self, key: str) -> t.Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, payload = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
        return json.loads(payload)

    async def set(self, key: str, value: t.Any, ttl: int) -> None:
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError):
            logger.exception("could not serialize cache value", extra={"key": key})
            return
        with self._lock:
            self._entries[key] = (self._clock() + ttl, payload)

    async def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)

    async def delete_prefix(self, prefix: str) -> int:
        now = self._clock()
        with self._lock:
            doomed = [k for k, (expires_at, _) in self._entries.items() if k.startswith(prefix) or expires_at <= now]
            live = 0
            for key in doomed:
                expires_at, _ = self._entries.pop(key)
                if key.startswith(prefix) and expires_at > now:
                    live += 1
        return live

    def __len__(self) -> int:
        return len(self._entries)
