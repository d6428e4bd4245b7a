"""Process-wide objects the container hands out: the clock and the logging setup."""

import datetime
import logging
import logging.config
import sys
import typing as t

TimestampProvider = t.Callable[[], datetime.datetime]

TRACE: t.Final[int] = 5


def install_trace_level() -> None:
    """Register TRACE (below DEBUG) so the logging config can name it; log at it with `logger.log(TRACE, ...)`."""
    logging.addLevelName(TRACE, "TRACE")


class LoggingProvider(object):
    """Applies the `logging` settings section and hands out loggers.

    Constructing it reconfigures the logging module, so the container holds
    it as a resource and builds it once per boot.
    """

    def __init__(self, config: dict[str, t.Any], debug: bool):
        install_trace_level()
        logging.config.dictConfig(config)
        self.debug = debug
        self.capture_warnings(debug)

    def get_logger(self, name: str | None = None) -> logging.Logger:
        """The logger called `name`, or the one for the calling module."""
        if name is None:
            name = sys._getframe(1).f_globals.get("__name__", "marginalia")
        return logging.getLogger(name)

    @staticmethod
    def capture_warnings(capture: bool) -> None:
        logging.captureWarnings(capture)
