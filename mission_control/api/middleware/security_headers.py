"""Security headers middleware for the Mission Control API

Adds security headers to every response:
- Content-Security-Policy (JSON only, nothing to load)
- X-Frame-Options (clickjacking protection)
- X-Content-Type-Options (MIME sniffing protection)
- Strict-Transport-Security (production only)
- Referrer-Policy
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from mission_control.config import is_production


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses"""

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self.is_production = is_production()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        # The API only serves JSON; nothing should ever be loaded or framed
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if self.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
