"""HTTP middleware."""

from evexia.middleware.request_logging import RequestLoggingMiddleware
from evexia.middleware.security_headers import SecurityHeadersMiddleware

__all__ = ["RequestLoggingMiddleware", "SecurityHeadersMiddleware"]
