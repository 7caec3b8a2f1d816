"""Security headers middleware.

Responses carry patient records, so every response is marked non-cacheable
and unframeable.
"""

from typing import Any, Callable, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from evexia.config import get_settings
from evexia.utils.logging import get_logger

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to responses."""

    def __init__(self, app: Any) -> None:
        """Initialize security headers middleware."""
        super().__init__(app)
        self.settings = get_settings()
        if self.settings.environment == "production":
            logger.info("security_headers_enabled", hsts=True)

    def _headers(self) -> Dict[str, str]:
        headers = {
            "X-Frame-Options": "DENY",
            "X-Content-Type-Options": "nosniff",
            "Referrer-Policy": "strict-origin-when-cross-origin",
            "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
            "Cache-Control": "no-store",
            "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
        }
        if self.settings.environment in ["production", "staging"]:
            headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )
        return headers

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Add security headers to response."""
        response: Response = await call_next(request)

        for header, value in self._headers().items():
            response.headers[header] = value

        for header in ("Server", "X-Powered-By"):
            if header in response.headers:
                del response.headers[header]

        return response
