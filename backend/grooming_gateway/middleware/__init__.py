"""
Middleware package.

WHY: Middleware provides cross-cutting concerns like security headers and
request logging that apply to all requests.
"""

from grooming_gateway.middleware.security_headers import SecurityHeadersMiddleware
from grooming_gateway.middleware.request_context import (
    RequestContextMiddleware,
    get_request_context,
    get_client_ip,
    RequestContext,
)

__all__ = [
    "SecurityHeadersMiddleware",
    "RequestContextMiddleware",
    "get_request_context",
    "get_client_ip",
    "RequestContext",
]
