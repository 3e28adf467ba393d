from __future__ import annotations

from typing import Tuple

from fastapi import Request

UNKNOWN = "unknown"

# Checked in order after X-Forwarded-For.
_SINGLE_IP_HEADERS = ("x-real-ip", "cf-connecting-ip")


def client_ip(request: Request) -> str:
    """Best-effort client address, honouring common proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    for header in _SINGLE_IP_HEADERS:
        value = request.headers.get(header)
        if value and value.strip():
            return value.strip()

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN


def user_agent(request: Request) -> str:
    value = request.headers.get("user-agent")
    return value if value else UNKNOWN


def request_metadata(request: Request) -> Tuple[str, str]:
    """``(ip_address, user_agent)`` ready to put on a security event."""
    return client_ip(request), user_agent(request)
