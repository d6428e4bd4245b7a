"""Redis implementation of the cache store."""

from __future__ import annotations

import itertools
import logging
import re
import typing as t

import redis.asyncio as redis
from redis.exceptions import RedisError

import marginalia.lib.json as json

logger = logging.getLogger(__name__)

_GlobSpecial = re.compile(r"([*?\[\]\\])")


def escape_glob(s: str) -> str:
    r"""Escape the characters SCAN MATCH treats as glob syntax.

    >>> escape_glob("user:a*b:")
    'user:a\\*b:'
    """
    return _GlobSpecial.sub(r"\\\1", s)


class RedisCacheStore(object):
    """Cache store on Redis.

    Every key is stored under `{namespace}:` so that prefix deletes never
    touch keys belonging to anything else sharing the database.
    """

    def __init__(
        self,
        client: redis.Redis,  # type: ignore[type-arg]
        namespace: str = "marginalia",
        scan_count: int = 500,
    ) -> None:
        self._client = client
        self._namespace = namespace
        self._scan_count = scan_count

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get(self, key: str) -> t.Any | None:
        try:
            payload = await self._client.get(self._key(key))
        except RedisError:
            logger.warning("cache read failed, treating as miss", exc_info=True, extra={"key": key})
            return None
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except ValueError:
            logger.warning("discarding undecodable cache entry", extra={"key": key})
            return None

    async def set(self, key: str, value: t.Any, ttl: int) -> None:
        try:
            await self._client.set(self._key(key), json.dumps(value), ex=ttl)
        except (RedisError, TypeError, ValueError):
            logger.warning("cache write failed", exc_info=True, extra={"key": key})

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self._client.delete(*[self._key(k) for k in keys])
        except RedisError:
            logger.warning("cache delete failed", exc_info=True, extra={"keys": list(keys)})

    async def delete_prefix(self, prefix: str) -> int:
        pattern = escape_glob(self._key(prefix)) + "*"
        deleted = 0
        try:
            keys = [k async for k in self._client.scan_iter(match=pattern, count=self._scan_count)]
            for batch in itertools.batched(keys, self._scan_count):
                deleted += await self._client.delete(*batch)
        except RedisError:
            logger.warning("cache prefix delete failed", exc_info=True, extra={"prefix": prefix})
        return deleted
