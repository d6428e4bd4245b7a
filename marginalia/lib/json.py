"""JSON for the values Marginalia stores, caches, logs and serves.

`encode` knows the non-JSON types that turn up in those places (pydantic
models, datetimes, enums, sets, paths); everything here routes through it.
"""

from __future__ import annotations

import datetime
import enum
import functools
import json as pyjson
import pathlib
import typing as t

import fastapi
import pydantic as p

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]


@functools.singledispatch
def encode(obj: t.Any) -> JSONValue:
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


@encode.register(p.BaseModel)
def _encode_model(obj: p.BaseModel) -> JSONValue:
    return obj.model_dump(mode="json")


# datetime.datetime is a datetime.date
@encode.register(datetime.date)
@encode.register(datetime.time)
def _encode_temporal(obj: datetime.date | datetime.time) -> JSONValue:
    return obj.isoformat()


@encode.register(datetime.timedelta)
def _encode_timedelta(obj: datetime.timedelta) -> JSONValue:
    return obj.total_seconds()


@encode.register(enum.Enum)
def _encode_enum(obj: enum.Enum) -> JSONValue:
    return obj.value


@encode.register(set)
@encode.register(frozenset)
def _encode_set(obj: set[t.Any] | frozenset[t.Any]) -> JSONValue:
    return sorted(obj)


@encode.register(pathlib.PurePath)
def _encode_path(obj: pathlib.PurePath) -> JSONValue:
    return str(obj)


def dumps(obj: t.Any, **kwargs: t.Any) -> str:
    return pyjson.dumps(obj, default=encode, **kwargs)


def loads(s: str | bytes | bytearray) -> t.Any:
    return pyjson.loads(s)


class FastAPIJSONResponse(fastapi.responses.JSONResponse):
    """A JSONResponse whose content may be a pydantic model or hold datetimes."""

    def render(self, content: t.Any) -> bytes:
        return dumps(content, ensure_ascii=False, allow_nan=False, separators=(",", ":")).encode("utf-8")
