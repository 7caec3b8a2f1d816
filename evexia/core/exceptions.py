"""Core Exceptions Module.

Domain errors raised by services. The API layer maps each one to an HTTP
status; services never raise HTTP exceptions themselves.
"""

from typing import Optional


class EvexiaError(Exception):
    """Base exception for all Evexia errors."""


class ValidationError(EvexiaError):
    """Raised when caller input is missing or malformed."""

    def __init__(self, message: str, field: Optional[str] = None):
        """Initialize validation error."""
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(EvexiaError):
    """Raised when an entity does not exist or is not owned by the caller."""

    def __init__(self, resource_type: str):
        """Initialize not found error."""
        super().__init__(f"{resource_type} not found")
        self.resource_type = resource_type
        self.message = f"{resource_type} not found"


class ConflictError(EvexiaError):
    """Raised when a write would violate a uniqueness rule."""


class AccessDeniedError(EvexiaError):
    """Raised when a provider access attempt fails authorization."""

    def __init__(self, reason: str):
        """Initialize access denied error."""
        super().__init__(reason)
        self.reason = reason


class VerificationError(EvexiaError):
    """Raised when a one-time passcode is wrong, expired, or used up."""


class DeliveryError(EvexiaError):
    """Raised when a passcode email could not be delivered."""


class AIGenerationError(EvexiaError):
    """Raised when the AI provider fails or returns unusable output."""


class RateLimitedError(DeliveryError):
    """Raised when too many passcodes were requested for one address."""
