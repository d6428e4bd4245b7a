"""Cache keys, lifetimes and invalidation for read-side views.

| resource             | key                                          | invalidated by                  |
|----------------------|----------------------------------------------|---------------------------------|
| assignment detail    | assignment:{code}:{submitter}                | assignment change, submission   |
| assignment list      | assignments:list:{submitter}:{filters}       | assignment change, submission   |
| user submission view | user:{submitter}:submission:{code}           | submission, feedback            |
| user status          | user:{submitter}:status                      | submission, feedback            |
| leaderboard          | leaderboard:{limit}                          | nothing; expires only           |
| submission status    | submission:{id}                              | any state change                |
"""

from __future__ import annotations

import logging
import typing as t

import pydantic as p

from marginalia.core.config.cache import CacheTTLSettings
from marginalia.core.provider import TRACE

from .store import CacheStore

logger = logging.getLogger(__name__)

T = t.TypeVar("T")


class CachePolicy(object):
    def __init__(self, store: CacheStore, ttl: CacheTTLSettings | None = None) -> None:
        self.store = store
        self.ttl = ttl or CacheTTLSettings()

    # keys
    @staticmethod
    def assignment_key(code: str, submitter_id: str) -> str:
        return f"assignment:{code}:{submitter_id}"

    @staticmethod
    def assignment_list_key(submitter_id: str, active: bool | None, limit: int, offset: int) -> str:
        return f"assignments:list:{submitter_id}:{active}:{limit}:{offset}"

    @staticmethod
    def user_submission_key(submitter_id: str, code: str) -> str:
        return f"user:{submitter_id}:submission:{code}"

    @staticmethod
    def user_status_key(submitter_id: str) -> str:
        return f"user:{submitter_id}:status"

    @staticmethod
    def leaderboard_key(limit: int) -> str:
        return f"leaderboard:{limit}"

    @staticmethod
    def submission_key(submission_id: str) -> str:
        return f"submission:{submission_id}"

    async def read_through(self, key: str, ttl: int, type_: type[T], load: t.Callable[[], T | None]) -> T | None:
        """Return the cached value at `key`, else `load()` it and cache the result.

        A cached value that no longer validates as `type_` is treated as a miss.
        Results of None are not cached.
        """
        adapter = p.TypeAdapter(type_)
        hit = await self._lookup(key, adapter)
        if hit is not None:
            return hit
        value = load()
        if value is not None:
            await self.store.set(key, adapter.dump_python(value, mode="json", by_alias=True), ttl)
        return value

    async def cached(self, key: str, ttl: int, type_: type[T], load: t.Callable[[], T]) -> T:
        """`read_through` for views that always exist."""
        adapter = p.TypeAdapter(type_)
        hit = await self._lookup(key, adapter)
        if hit is not None:
            return hit
        value = load()
        await self.store.set(key, adapter.dump_python(value, mode="json", by_alias=True), ttl)
        return value

    async def _lookup(self, key: str, adapter: p.TypeAdapter[T]) -> T | None:
        cached = await self.store.get(key)
        if cached is not None:
            try:
                value = adapter.validate_python(cached)
            except p.ValidationError:
                logger.warning("discarding stale cache entry", extra={"key": key})
            else:
                logger.log(TRACE, "cache hit", extra={"key": key})
                return value
        logger.log(TRACE, "cache miss", extra={"key": key})
        return None

    # invalidation
    async def invalidate_assignment(self, code: str) -> None:
        """After an assignment is created, changed or deleted."""
        await self.store.delete_prefix(f"assignment:{code}:")
        await self.store.delete_prefix("assignments:list:")

    async def invalidate_submission(self, code: str, submitter_id: str, submission_id: str) -> None:
        """After a submission is written or its feedback state changes.

        Submission counts appear in every submitter's assignment views, so
        those go too.
        """
        await self.store.delete(self.submission_key(submission_id))
        await self.store.delete_prefix(f"user:{submitter_id}:")
        await self.store.delete_prefix(f"assignment:{code}:")
        await self.store.delete_prefix("assignments:list:")
        logger.debug(
            "invalidated submission views",
            extra={"assignment_code": code, "submitter_id": submitter_id, "submission_id": submission_id},
        )
