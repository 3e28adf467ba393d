from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

from .formatting import LogEntry

SECURITY_LOGGER_NAME = "authwatch.security"


class _BelowWarning(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.WARNING


class ConsoleSink:
    """Emits security lines through the ``authwatch.security`` logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(SECURITY_LOGGER_NAME)

    def emit(self, entry: LogEntry) -> None:
        self.logger.log(entry.level, "%s", entry.line)


def configure_console_logging(
    level: int = logging.INFO,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> logging.Logger:
    """Route informational lines to stdout and warnings/errors to stderr.

    For applications that do not configure logging themselves. Calling it
    again replaces the handlers it installed earlier.
    """
    security_logger = logging.getLogger(SECURITY_LOGGER_NAME)
    for handler in list(security_logger.handlers):
        if getattr(handler, "_authwatch_console", False):
            security_logger.removeHandler(handler)

    formatter = logging.Formatter("%(message)s")

    info_handler = logging.StreamHandler(stdout or sys.stdout)
    info_handler.setLevel(level)
    info_handler.addFilter(_BelowWarning())
    info_handler.setFormatter(formatter)

    warn_handler = logging.StreamHandler(stderr or sys.stderr)
    warn_handler.setLevel(max(level, logging.WARNING))
    warn_handler.setFormatter(formatter)

    for handler in (info_handler, warn_handler):
        handler._authwatch_console = True  # type: ignore[attr-defined]
        security_logger.addHandler(handler)

    security_logger.setLevel(level)
    return security_logger
