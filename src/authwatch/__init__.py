"""Security event logging and suspicious-activity detection."""

from authwatch.config import LoggerConfig, SuspiciousActivityThresholds
from authwatch.events import (
    AdminAction,
    LoginAttempt,
    LoginFailure,
    LoginSuccess,
    Logout,
    RateLimitExceeded,
    Severity,
    SuspiciousActivity,
    SystemErrorEvent,
    TokenInvalid,
    UnauthorizedAccess,
    parse_event,
)
from authwatch.services import (
    SecurityLogger,
    get_logger,
    get_security_stats,
    is_suspicious_ip,
    is_suspicious_user,
    record_security_event,
    reset_for_testing,
)

__version__ = "0.1.0"

__all__ = [
    "AdminAction",
    "LoggerConfig",
    "LoginAttempt",
    "LoginFailure",
    "LoginSuccess",
    "Logout",
    "RateLimitExceeded",
    "SecurityLogger",
    "Severity",
    "SuspiciousActivity",
    "SuspiciousActivityThresholds",
    "SystemErrorEvent",
    "TokenInvalid",
    "UnauthorizedAccess",
    "get_logger",
    "get_security_stats",
    "is_suspicious_ip",
    "is_suspicious_user",
    "parse_event",
    "record_security_event",
    "reset_for_testing",
]
