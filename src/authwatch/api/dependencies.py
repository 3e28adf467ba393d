from __future__ import annotations

from fastapi import Depends, Request

from authwatch.api.request_context import request_metadata
from authwatch.services.security_logger import SecurityLogger, get_logger


def get_security_logger() -> SecurityLogger:
    """Return the process-wide security logger."""
    return get_logger()


class RequestSecurityContext:
    """Per-request view: client metadata plus the shared logger."""

    def __init__(self, request: Request, security_logger: SecurityLogger):
        self.ip_address, self.user_agent = request_metadata(request)
        self.security_logger = security_logger

    def is_suspicious(self, username: str = "") -> bool:
        if self.security_logger.is_suspicious_ip(self.ip_address):
            return True
        return bool(username) and self.security_logger.is_suspicious_user(username)


def get_request_security_context(
    request: Request,
    security_logger: SecurityLogger = Depends(get_security_logger),
) -> RequestSecurityContext:
    return RequestSecurityContext(request, security_logger)
