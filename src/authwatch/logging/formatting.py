from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping

from authwatch.events.models import BaseSecurityEvent, Severity

_BARE_VALUE = re.compile(r"[\w.:/@+-]+")


@dataclass(frozen=True)
class LogEntry:
    """One emission: a console line plus the structured record behind it."""

    kind: str
    event_id: str
    severity: Severity
    level: int
    event: BaseSecurityEvent
    line: str
    record: Dict[str, Any] = field(default_factory=dict)


def _render_value(value: Any) -> str:
    if isinstance(value, str) and _BARE_VALUE.fullmatch(value):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, default=str, sort_keys=True)


def render_console_line(
    label: str,
    severity: Severity,
    ip_address: str,
    user_agent: str,
    fields: Mapping[str, Any],
) -> str:
    """``[SECURITY:<LEVEL>] <label> ip=<ip> ua=<user_agent> key=value ...``

    Every caller-supplied token is JSON-quoted unless it is a bare word, so one
    emission always renders as exactly one line.
    """
    parts = [
        f"[SECURITY:{severity.value.upper()}]",
        label,
        f"ip={_render_value(ip_address)}",
        f"ua={_render_value(user_agent)}",
    ]
    parts.extend(
        f"{_render_value(str(key))}={_render_value(value)}" for key, value in fields.items()
    )
    return " ".join(parts)


def event_payload(event: BaseSecurityEvent) -> Dict[str, Any]:
    payload = event.model_dump()
    payload["timestamp"] = event.timestamp.isoformat()
    return payload


def build_record(
    *,
    kind: str,
    event_id: str,
    severity: Severity,
    event: BaseSecurityEvent,
    environment: str,
    logged_at: datetime,
    annotations: List[str],
    **extra: Any,
) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "kind": kind,
        "event_id": event_id,
        "severity": severity.value,
        "environment": environment,
        "logged_at": logged_at.isoformat(),
        "annotations": list(annotations),
        "event": event_payload(event),
    }
    record.update(extra)
    return record


def serialize_record(record: Mapping[str, Any]) -> str:
    """One self-contained JSON line. Raises TypeError/ValueError on unserializable values."""
    return json.dumps(record, sort_keys=True)
