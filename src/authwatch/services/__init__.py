from .security_logger import (
    SecurityLogger,
    get_logger,
    get_security_stats,
    is_suspicious_ip,
    is_suspicious_user,
    record_security_event,
    reset_for_testing,
)

__all__ = [
    "SecurityLogger",
    "get_logger",
    "get_security_stats",
    "is_suspicious_ip",
    "is_suspicious_user",
    "record_security_event",
    "reset_for_testing",
]
