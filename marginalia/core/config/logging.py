"""The `logging` section: a typed mirror of a `logging.config.dictConfig` document."""

import pathlib
import typing as t

import pydantic as p

from .base import BaseSettings

# the stdlib names plus TRACE, registered by LoggingProvider
LogLevel = t.Literal["NOTSET", "TRACE", "DEBUG", "INFO", "WARNING", "WARN", "ERROR", "FATAL", "CRITICAL"]


class ExtraFormatterSettings(BaseSettings):
    """Console formatter that appends the record's `extra` fields."""

    factory: t.Literal["marginalia.lib.logging.ExtraFormatter"] = p.Field(alias="()")
    base: str
    format: str | None = None
    datefmt: str | None = None
    log_colors: dict[str, str] = {}
    no_color: bool = False
    indent: bool = True
    max_value_chars: int = 400


class ColoredFormatterSettings(BaseSettings):
    factory: t.Literal["colorlog.ColoredFormatter", "colorlog.TTYColoredFormatter"] = p.Field(alias="()")
    format: str | None = None
    datefmt: str | None = None
    log_colors: dict[str, str] = {}


class StreamHandlerSettings(BaseSettings):
    handler: t.Literal["marginalia.lib.logging.ExtraStreamHandler", "colorlog.StreamHandler"] = p.Field(
        alias="class"
    )
    formatter: str
    level: LogLevel = "NOTSET"
    stream: str = "ext://sys.stderr"


class RotatingFileHandlerSettings(BaseSettings):
    """Daily (by default) rotated log file, for deployments without a log collector."""

    handler: t.Literal["logging.handlers.TimedRotatingFileHandler"] = p.Field(alias="class")
    formatter: str
    level: LogLevel = "NOTSET"
    filename: pathlib.Path
    when: str = "midnight"
    backupCount: int = 7


FormatterSettings = t.Annotated[ExtraFormatterSettings | ColoredFormatterSettings, p.Field(discriminator="factory")]
HandlerSettings = t.Annotated[
    StreamHandlerSettings | RotatingFileHandlerSettings,
    p.Field(discriminator="handler"),
]


class LoggerSettings(BaseSettings):
    level: LogLevel = "NOTSET"
    propagate: bool = True
    handlers: list[str] | None = None


class RootLoggerSettings(BaseSettings):
    handlers: list[str]
    level: LogLevel = "WARNING"


class LoggingSettings(BaseSettings):
    version: t.Literal[1] = 1
    disable_existing_loggers: bool = False
    formatters: dict[str, FormatterSettings]
    handlers: dict[str, HandlerSettings]
    root: RootLoggerSettings
    loggers: dict[str, LoggerSettings] = {}

    @p.model_validator(mode="after")
    def check_references(self) -> t.Self:
        for name, handler in self.handlers.items():
            if handler.formatter not in self.formatters:
                raise ValueError(f"handler {name!r} uses unknown formatter {handler.formatter!r}")
        named = [*self.root.handlers, *(h for lg in self.loggers.values() for h in lg.handlers or ())]
        if missing := sorted(set(named) - set(self.handlers)):
            raise ValueError(f"unknown handlers: {', '.join(missing)}")
        return self

    @p.field_serializer("formatters", "handlers", "loggers")
    def serialize_entries(self, v: dict[str, BaseSettings]) -> dict[str, t.Any]:
        # dictConfig reads "()" and "class" keys and treats a present None as a value
        return {k: s.model_dump(exclude_none=True) for k, s in v.items()}
