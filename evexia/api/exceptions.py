"""Custom exceptions for the Evexia API.

Every error body has the shape ``{"error": "<message>"}``. Domain errors
raised by services are translated here so handlers never build error
responses by hand.
"""

import math
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from evexia.core.exceptions import (
    AccessDeniedError,
    ConflictError,
    DeliveryError,
    EvexiaError,
    NotFoundError,
    RateLimitedError,
    ValidationError as DomainValidationError,
    VerificationError,
)
from evexia.utils.logging import get_logger

logger = get_logger(__name__)


class BaseAPIException(HTTPException):
    """Base exception for all API exceptions."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        """Initialize base API exception."""
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code or self.__class__.__name__

    def body(self) -> Dict[str, Any]:
        """JSON body for this error."""
        return {"error": self.detail}


class ValidationError(BaseAPIException):
    """Raised when input is missing or malformed."""

    def __init__(self, detail: str, field: Optional[str] = None):
        """Initialize validation error."""
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="VALIDATION_ERROR",
        )
        self.field = field


class AuthorizationError(BaseAPIException):
    """Raised when authorization fails."""

    def __init__(self, detail: str = "Forbidden"):
        """Initialize authorization error."""
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="AUTHORIZATION_ERROR",
        )


class ResourceNotFoundError(BaseAPIException):
    """Raised when a requested resource is not found or not owned."""

    def __init__(self, resource_type: str = "Resource", detail: Optional[str] = None):
        """Initialize resource not found error."""
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail or f"{resource_type} not found",
            error_code="RESOURCE_NOT_FOUND",
        )


class UnprocessableError(BaseAPIException):
    """Raised when a well-formed request cannot be honoured."""

    def __init__(self, detail: str):
        """Initialize unprocessable error."""
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="UNPROCESSABLE",
        )


class CooldownActiveError(BaseAPIException):
    """Raised when a summary is regenerated inside its cooldown."""

    def __init__(self, retry_after_ms: int):
        """Initialize cooldown error."""
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Summary was generated recently. Please wait before regenerating.",
            headers={"Retry-After": str(max(1, math.ceil(retry_after_ms / 1000)))},
            error_code="COOLDOWN_ACTIVE",
        )
        self.retry_after_ms = retry_after_ms

    def body(self) -> Dict[str, Any]:
        """Cooldown bodies carry the remaining wait."""
        return {
            "success": False,
            "error": self.detail,
            "retryAfterMs": self.retry_after_ms,
        }


class RateLimitExceededError(BaseAPIException):
    """Raised when a rate limit is exceeded."""

    def __init__(self, detail: str = "Too many requests", retry_after: int = 3600):
        """Initialize rate limit error."""
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail,
            headers={"Retry-After": str(retry_after)},
            error_code="RATE_LIMIT_EXCEEDED",
        )


class ExternalServiceError(BaseAPIException):
    """Raised when an external service call fails."""

    def __init__(self, detail: str):
        """Initialize external service error."""
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="EXTERNAL_SERVICE_ERROR",
        )


def translate_domain_error(exc: EvexiaError) -> BaseAPIException:
    """Map a service-layer error to its HTTP counterpart."""
    if isinstance(exc, DomainValidationError):
        return ValidationError(exc.message, field=exc.field)
    if isinstance(exc, VerificationError):
        return ValidationError(str(exc) or "Invalid or expired verification code")
    if isinstance(exc, NotFoundError):
        return ResourceNotFoundError(exc.resource_type)
    if isinstance(exc, AccessDeniedError):
        return AuthorizationError(exc.reason)
    if isinstance(exc, ConflictError):
        return UnprocessableError(str(exc))
    if isinstance(exc, RateLimitedError):
        return RateLimitExceededError(str(exc))
    if isinstance(exc, DeliveryError):
        return ExternalServiceError("Failed to send verification code")
    return ExternalServiceError("Internal server error")


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part != "body"]
    if not location:
        return "Request body must be a JSON object"
    return f"{'.'.join(location)}: {first.get('msg', 'invalid value')}"


async def api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """Render API exceptions."""
    return JSONResponse(status_code=exc.status_code, content=exc.body(), headers=exc.headers)


async def domain_exception_handler(request: Request, exc: EvexiaError) -> JSONResponse:
    """Render domain errors that escaped a handler."""
    api_exc = translate_domain_error(exc)
    if api_exc.status_code >= 500:
        logger.error(
            "domain_error",
            path=request.url.path,
            error_type=type(exc).__name__,
            error=str(exc),
        )
    return await api_exception_handler(request, api_exc)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework HTTP errors (404 routes, 405 methods) in the same shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies and parameters are 400s with a field message."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": _validation_message(exc)},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log and hide unexpected failures."""
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install every error handler on ``app``."""
    app.add_exception_handler(BaseAPIException, api_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(EvexiaError, domain_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_exception_handler)
