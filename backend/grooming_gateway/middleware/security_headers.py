"""
Security headers middleware.

WHY: These headers instruct browsers to enforce additional policies on every
response the gateway returns, including spreadsheet downloads and the
import progress stream.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from typing import Callable


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds security headers to all responses.

    - X-Content-Type-Options: Prevents MIME-sniffing of attachments
    - X-Frame-Options: Prevents clickjacking
    - Referrer-Policy: Controls referrer information sent to other sites
    - Cache-Control: API responses are never cached unless a route says otherwise
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Add security headers to response.

        Args:
            request: Incoming request
            call_next: Next middleware/handler

        Returns:
            Response with security headers added
        """
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Routes such as the event stream set their own Cache-Control.
        if request.url.path.startswith("/api"):
            response.headers.setdefault(
                "Cache-Control", "no-store, no-cache, must-revalidate, private"
            )

        return response
