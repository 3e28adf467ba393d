from __future__ import annotations

import logging
from typing import Optional

INTERNAL_LOGGER_NAME = "authwatch.internal"
ERROR_MARKER = "[SECURITY_LOGGER_ERROR]"

internal_logger = logging.getLogger(INTERNAL_LOGGER_NAME)


def report_internal_error(context: str, exc: Optional[BaseException] = None) -> None:
    """Report an operational failure of the logger itself.

    Kept apart from the security event channel so operators can route the two
    differently. Never raises.
    """
    if exc is None:
        internal_logger.error("%s %s", ERROR_MARKER, context)
    else:
        internal_logger.error("%s %s: %s", ERROR_MARKER, context, exc, exc_info=exc)


def report_internal_warning(context: str) -> None:
    internal_logger.warning("%s %s", ERROR_MARKER, context)
