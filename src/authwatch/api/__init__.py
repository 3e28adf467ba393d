from .dependencies import RequestSecurityContext, get_request_security_context, get_security_logger
from .request_context import client_ip, request_metadata, user_agent

__all__ = [
    "RequestSecurityContext",
    "client_ip",
    "get_request_security_context",
    "get_security_logger",
    "request_metadata",
    "user_agent",
]
