from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

UTC = timezone.utc


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Severity(str, Enum):
    """Severity levels, ordered from least to most severe."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def at_least(self, other: "Severity") -> bool:
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class EventType(str, Enum):
    LOGIN_ATTEMPT = "login_attempt"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILURE = "login_failure"
    LOGOUT = "logout"
    TOKEN_INVALID = "token_invalid"
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    ADMIN_ACTION = "admin_action"
    SYSTEM_ERROR = "system_error"
    SUSPICIOUS_ACTIVITY = "suspicious_activity"


class BaseSecurityEvent(BaseModel):
    """Fields shared by every observed occurrence."""

    model_config = ConfigDict(frozen=True)

    ip_address: str
    user_agent: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    user_id: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def event_type(self) -> EventType:
        return EventType(self.type)  # type: ignore[attr-defined]


class LoginAttempt(BaseSecurityEvent):
    type: Literal["login_attempt"] = "login_attempt"
    username: Optional[str] = None


class LoginSuccess(BaseSecurityEvent):
    type: Literal["login_success"] = "login_success"
    username: Optional[str] = None


class LoginFailure(BaseSecurityEvent):
    type: Literal["login_failure"] = "login_failure"
    username: Optional[str] = None
    reason: Optional[str] = None


class Logout(BaseSecurityEvent):
    type: Literal["logout"] = "logout"


class TokenInvalid(BaseSecurityEvent):
    type: Literal["token_invalid"] = "token_invalid"
    reason: Optional[str] = None


class UnauthorizedAccess(BaseSecurityEvent):
    type: Literal["unauthorized_access"] = "unauthorized_access"
    resource: Optional[str] = None
    reason: Optional[str] = None


class RateLimitExceeded(BaseSecurityEvent):
    type: Literal["rate_limit_exceeded"] = "rate_limit_exceeded"
    username: Optional[str] = None
    retry_after_seconds: Optional[int] = None


class AdminAction(BaseSecurityEvent):
    type: Literal["admin_action"] = "admin_action"
    action: str
    target: Optional[str] = None
    success: bool = True


class SystemErrorEvent(BaseSecurityEvent):
    type: Literal["system_error"] = "system_error"
    message: str


class SuspiciousActivity(BaseSecurityEvent):
    """Synthesized by the detectors; never built by callers."""

    type: Literal["suspicious_activity"] = "suspicious_activity"
    findings: List[str] = Field(default_factory=list)
    trigger_event_id: Optional[str] = None
    trigger_type: Optional[str] = None


SecurityEvent = Annotated[
    Union[
        LoginAttempt,
        LoginSuccess,
        LoginFailure,
        Logout,
        TokenInvalid,
        UnauthorizedAccess,
        RateLimitExceeded,
        AdminAction,
        SystemErrorEvent,
        SuspiciousActivity,
    ],
    Field(discriminator="type"),
]

_EVENT_ADAPTER: TypeAdapter = TypeAdapter(SecurityEvent)

_COMMON_FIELDS = {"type", "ip_address", "user_agent", "timestamp", "user_id", "extra"}


def parse_event(payload: Mapping[str, Any]) -> BaseSecurityEvent:
    """Validate a plain mapping into the matching event variant.

    Raises pydantic.ValidationError for unknown types or missing fields.
    """
    return _EVENT_ADAPTER.validate_python(dict(payload))


def details(event: BaseSecurityEvent) -> Dict[str, Any]:
    """Variant-specific fields that are set, followed by ``extra``."""
    result: Dict[str, Any] = {}
    for name in type(event).model_fields:
        if name in _COMMON_FIELDS:
            continue
        value = getattr(event, name)
        if value is None or value == []:
            continue
        result[name] = value
    for key, value in event.extra.items():
        result.setdefault(key, value)
    return result


def username_of(event: BaseSecurityEvent) -> Optional[str]:
    username = getattr(event, "username", None)
    return username or None
