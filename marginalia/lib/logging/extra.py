import json
import logging
import string
import textwrap
import typing as t

import colorlog
import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]
from pygments.style import Style

import marginalia.lib.json

from .style import LogStyle

ReservedKeys = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "color_message"}


def _encode(obj: t.Any) -> marginalia.lib.json.JSONValue:
    try:
        return marginalia.lib.json.encode(obj)
    except TypeError:
        return repr(obj)


def _clip(value: t.Any, limit: int) -> t.Any:
    # submission bodies and model replies end up in `extra`; keep them readable
    if isinstance(value, str) and len(value) > limit:
        return f"{value[:limit]}... ({len(value) - limit} more characters)"
    return value


class ExtraFormatter(logging.Formatter):
    """
    Formats the record with a base formatter (colorlog's, usually), then
    appends the fields passed as `extra=` as a JSON object. Long string
    values are clipped and the JSON is highlighted when the stream is a tty.
    """

    def __init__(
        self,
        base: type[logging.Formatter],
        format: str | None,
        datefmt: str | None = None,
        indent: bool = True,
        no_color: bool = False,
        max_value_chars: int = 400,
        pyg_style: t.Type[Style] = LogStyle,
        style: t.Literal["%", "{", "$"] = "%",
        validate: bool = True,
        *,
        defaults: t.Any = None,
        **kwargs: t.Any,
    ):
        super().__init__(format, datefmt=datefmt, style=style, validate=False)
        if no_color:
            kwargs["no_color"] = True
        self.base = base(format, datefmt=datefmt, style=style, validate=validate, defaults=defaults, **kwargs)
        self.pyg_style = pyg_style
        self.indent = indent
        self.no_color = no_color
        self.max_value_chars = max_value_chars
        self.isatty = False

    def format(self, record: logging.LogRecord) -> str:
        if "color_message" in record.__dict__:
            record.msg = record.__dict__.pop("color_message")
        if "\n" in record.getMessage():
            self.hang_lines(record)
        message = self.base.format(record)

        extra = {k: _clip(v, self.max_value_chars) for k, v in record.__dict__.items() if k not in ReservedKeys}
        if not extra:
            return message
        return f"{message} {self.render_extra(extra)}"

    def hang_lines(self, record: logging.LogRecord) -> None:
        """Indent continuation lines of a multi-line message to where the message starts."""
        msg = record.getMessage()
        formatted = self.base.format(record)
        prefix = formatted[: formatted.find(msg)]
        indent = " " * sum(1 for c in prefix if c in string.printable)
        first, *rest = msg.splitlines()
        body = textwrap.indent("\n".join(rest), prefix=indent)
        record.msg = record.message = f"{first}\n{body}"
        record.args = None

    def render_extra(self, extra: dict[str, t.Any]) -> str:
        js = json.dumps(extra, sort_keys=True, indent=(4 if self.indent else None), default=_encode)
        if self.isatty and not self.no_color:
            hl = pygments.highlight  # pyright: ignore [reportUnknownMemberType, reportUnknownVariableType]
            js = hl(js, JsonLexer(), Terminal256Formatter[str](style=self.pyg_style), None)
        return js.strip()


class ExtraStreamHandler(colorlog.StreamHandler):  # type: ignore[type-arg]
    """Stream handler that tells its ExtraFormatter whether the stream is a tty."""

    def setFormatter(self, fmt: logging.Formatter | None) -> None:
        super().setFormatter(fmt)
        if isinstance(fmt, ExtraFormatter):
            isatty = getattr(self.stream, "isatty", None)
            fmt.isatty = bool(isatty and isatty())
