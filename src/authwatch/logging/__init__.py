from .internal import (
    ERROR_MARKER,
    INTERNAL_LOGGER_NAME,
    report_internal_error,
    report_internal_warning,
)
from .formatting import LogEntry, build_record, render_console_line, serialize_record
from .console import SECURITY_LOGGER_NAME, ConsoleSink, configure_console_logging
from .writer import BackgroundWriter, WriteBatch
from .file_sink import RotatingFileSink
from .audit_store import AuditStore

__all__ = [
    "AuditStore",
    "BackgroundWriter",
    "ConsoleSink",
    "ERROR_MARKER",
    "INTERNAL_LOGGER_NAME",
    "LogEntry",
    "RotatingFileSink",
    "SECURITY_LOGGER_NAME",
    "WriteBatch",
    "build_record",
    "configure_console_logging",
    "render_console_line",
    "report_internal_error",
    "report_internal_warning",
    "serialize_record",
]
