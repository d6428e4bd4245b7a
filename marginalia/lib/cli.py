from __future__ import annotations

import datetime
import enum
import pathlib
import typing as t

import click
import pydantic as p
from click import *  # noqa: F401, F403 # pyright: ignore [reportWildcardImportFromLibrary]

# Command modules import this module as `click`: everything click provides,
# plus the parameter types below.


class EnumType(click.Choice):
    """A choice among an enum's values, converted to the member. Case does not matter."""

    def __init__(self, enum: type[enum.Enum]):
        self.enum = enum
        super().__init__([str(e.value) for e in enum], case_sensitive=False)
        self.name = enum.__name__

    def convert(self, value: t.Any, param: click.Parameter | None, ctx: click.Context | None) -> enum.Enum | None:
        if value is None or isinstance(value, self.enum):
            return value
        return self.enum(super().convert(value, param, ctx))


class InstantParamType(click.ParamType):
    """
    ISO-8601 timestamps; naive values are taken to be UTC so that every
    instant we hand to the application is timezone-aware
    """

    name = "ISO-8601 TIMESTAMP"

    def convert(
        self, value: str | datetime.datetime | None, param: click.Parameter | None, ctx: click.Context | None
    ) -> datetime.datetime | None:
        if value is None:
            return None
        if isinstance(value, datetime.datetime):
            dt = value
        else:
            try:
                dt = datetime.datetime.fromisoformat(value.strip())
            except ValueError:
                self.fail(f"{value!r} is not an ISO-8601 timestamp", param, ctx)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=datetime.UTC)
        return dt

    def __repr__(self) -> str:
        return "INSTANT"


class URIParamType(click.ParamType):
    """
    A URI, or a filesystem path taken as a `file://` URI. Local paths must
    exist; directories are refused unless `dir_ok`.
    """

    def __init__(self, dir_ok: bool = False):
        self.dir_ok = dir_ok
        self.name = "URI OR PATH"

    def convert(
        self, value: str | pathlib.Path | p.AnyUrl | None, param: click.Parameter | None, ctx: click.Context | None
    ) -> p.AnyUrl | None:
        if value is None or isinstance(value, p.AnyUrl):
            return value
        if isinstance(value, str) and "://" in value:
            url = p.AnyUrl(value)
            if url.scheme != "file":
                return url
            path = pathlib.Path(url.path or "")
        else:
            path = pathlib.Path(value)

        path = path.absolute()
        if not path.exists():
            self.fail(f"{value}: no such file or directory", param, ctx)
        if path.is_dir() and not self.dir_ok:
            self.fail(f"{value}: is a directory", param, ctx)
        return p.FileUrl(f"file://{path}")
