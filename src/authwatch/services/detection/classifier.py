from __future__ import annotations

import logging

from authwatch.events.models import (
    AdminAction,
    BaseSecurityEvent,
    EventType,
    LoginFailure,
    Severity,
)

_LEVEL_FOR_SEVERITY = {
    Severity.LOW: logging.INFO,
    Severity.MEDIUM: logging.INFO,
    Severity.HIGH: logging.WARNING,
    Severity.CRITICAL: logging.ERROR,
}

_BASE_SEVERITY = {
    EventType.LOGIN_ATTEMPT: Severity.LOW,
    EventType.LOGIN_SUCCESS: Severity.LOW,
    EventType.LOGOUT: Severity.LOW,
    EventType.LOGIN_FAILURE: Severity.MEDIUM,
    EventType.TOKEN_INVALID: Severity.MEDIUM,
    EventType.UNAUTHORIZED_ACCESS: Severity.MEDIUM,
    EventType.RATE_LIMIT_EXCEEDED: Severity.MEDIUM,
    EventType.SYSTEM_ERROR: Severity.MEDIUM,
    EventType.SUSPICIOUS_ACTIVITY: Severity.HIGH,
}


def classify(event: BaseSecurityEvent) -> Severity:
    """Map an event to its severity. Pure and deterministic."""
    if isinstance(event, LoginFailure) and event.reason == "account_locked":
        return Severity.HIGH

    if isinstance(event, AdminAction):
        return Severity.LOW if event.success else Severity.MEDIUM

    return _BASE_SEVERITY.get(event.event_type, Severity.MEDIUM)


def log_level_for(severity: Severity) -> int:
    """Stdlib logging level a line of this severity is emitted at."""
    return _LEVEL_FOR_SEVERITY[severity]
