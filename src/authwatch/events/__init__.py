from .models import (
    AdminAction,
    BaseSecurityEvent,
    EventType,
    LoginAttempt,
    LoginFailure,
    LoginSuccess,
    Logout,
    RateLimitExceeded,
    SecurityEvent,
    Severity,
    SuspiciousActivity,
    SystemErrorEvent,
    TokenInvalid,
    UnauthorizedAccess,
    details,
    ensure_utc,
    parse_event,
    username_of,
)

__all__ = [
    "AdminAction",
    "BaseSecurityEvent",
    "EventType",
    "LoginAttempt",
    "LoginFailure",
    "LoginSuccess",
    "Logout",
    "RateLimitExceeded",
    "SecurityEvent",
    "Severity",
    "SuspiciousActivity",
    "SystemErrorEvent",
    "TokenInvalid",
    "UnauthorizedAccess",
    "details",
    "ensure_utc",
    "parse_event",
    "username_of",
]
