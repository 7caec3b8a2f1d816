"""Email delivery for one-time passcodes.

Providers are pluggable: Amazon SES in deployed environments, a logging
provider for local development.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from evexia.config import Settings
from evexia.utils.clock import utcnow
from evexia.utils.logging import get_logger
from evexia.utils.masking import mask_email

logger = get_logger(__name__)


class EmailStatus(Enum):
    """Email delivery status."""

    SENT = "sent"
    FAILED = "failed"


@dataclass
class Email:
    """Email message structure."""

    to: List[str]
    subject: str
    body_text: str
    body_html: Optional[str] = None
    from_email: Optional[str] = None
    tags: List[str] = field(default_factory=list)


@dataclass
class EmailResult:
    """Result of email send operation."""

    message_id: Optional[str]
    status: EmailStatus
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)
    provider_response: Dict[str, Any] = field(default_factory=dict)


class EmailProvider(ABC):
    """Abstract base class for email providers."""

    @abstractmethod
    async def send_email(self, email: Email) -> EmailResult:
        """Send an email through the provider."""


class LoggingEmailProvider(EmailProvider):
    """Development provider that logs instead of sending.

    The message body holds the passcode, so it is only logged at debug level.
    """

    async def send_email(self, email: Email) -> EmailResult:
        """Log the email and report it as sent."""
        logger.info(
            "email_logged",
            to=[mask_email(address) for address in email.to],
            subject=email.subject,
        )
        logger.debug("email_body", body=email.body_text)
        return EmailResult(message_id=None, status=EmailStatus.SENT)


class EmailService:
    """Sends email through a provider with simple retry."""

    def __init__(
        self,
        provider: EmailProvider,
        default_from_email: str = "no-reply@evexia.health",
        retry_attempts: int = 2,
        retry_delay: float = 0.5,
    ):
        """Initialize email service."""
        self.provider = provider
        self.default_from_email = default_from_email
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay

    async def send_email(self, email: Email) -> EmailResult:
        """Send an email, retrying provider failures."""
        if not email.from_email:
            email.from_email = self.default_from_email

        last_error: Optional[str] = None
        for attempt in range(self.retry_attempts):
            try:
                result = await self.provider.send_email(email)
            except (ValueError, RuntimeError, OSError) as e:
                last_error = str(e)
                logger.error("email_send_attempt_failed", attempt=attempt + 1, error=str(e))
            else:
                if result.status == EmailStatus.SENT:
                    return result
                last_error = result.error

            if attempt < self.retry_attempts - 1:
                await asyncio.sleep(self.retry_delay * (attempt + 1))

        return EmailResult(
            message_id=None,
            status=EmailStatus.FAILED,
            error=last_error or "Unknown error",
        )


def build_email_service(settings: Settings) -> EmailService:
    """Create the email service selected by ``email_backend``."""
    provider: EmailProvider
    if settings.email_backend == "ses":
        from evexia.services.email.ses_provider import (  # pylint: disable=import-outside-toplevel
            SESProvider,
        )

        provider = SESProvider(
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )
    else:
        provider = LoggingEmailProvider()
    return EmailService(provider, default_from_email=settings.email_from)
