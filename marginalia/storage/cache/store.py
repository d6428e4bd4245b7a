"""Cache store protocol."""

from __future__ import annotations

import typing as t


class CacheStore(t.Protocol):
    """Key-value store with per-key expiry, holding JSON-serializable values.

    Implementations never raise on backend failures: reads that fail are
    misses and writes that fail are dropped, because the database behind the
    cache is always the source of truth.
    """

    async def get(self, key: str) -> t.Any | None:
        """Return the value stored at `key`, or None on a miss."""
        ...

    async def set(self, key: str, value: t.Any, ttl: int) -> None:
        """Store `value` at `key` for `ttl` seconds."""
        ...

    async def delete(self, *keys: str) -> None: ...

    async def delete_prefix(self, prefix: str) -> int:
        """Delete every key beginning with `prefix`.

        Returns:
            The number of keys deleted.
        """
        ...
