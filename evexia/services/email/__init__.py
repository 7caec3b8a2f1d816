"""Email delivery."""

from evexia.services.email.email_service import (
    Email,
    EmailProvider,
    EmailResult,
    EmailService,
    EmailStatus,
    LoggingEmailProvider,
    build_email_service,
)

__all__ = [
    "Email",
    "EmailProvider",
    "EmailResult",
    "EmailService",
    "EmailStatus",
    "LoggingEmailProvider",
    "build_email_service",
]
