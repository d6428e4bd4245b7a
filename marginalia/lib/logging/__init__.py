__all__ = [
    "ExtraFormatter",
    "ExtraStreamHandler",
    "LogStyle",
]

from .extra import ExtraFormatter, ExtraStreamHandler
from .style import LogStyle
