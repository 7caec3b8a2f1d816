"""AWS SES Email Provider implementation."""

import asyncio
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from evexia.services.email.email_service import (
    Email,
    EmailProvider,
    EmailResult,
    EmailStatus,
)
from evexia.utils.logging import get_logger

logger = get_logger(__name__)


class SESProvider(EmailProvider):
    """AWS SES email provider implementation."""

    def __init__(
        self,
        region_name: str = "us-east-1",
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        configuration_set: Optional[str] = None,
    ):
        """Initialize SES provider.

        Args:
            region_name: AWS region
            aws_access_key_id: AWS access key (uses environment if not provided)
            aws_secret_access_key: AWS secret key (uses environment if not provided)
            configuration_set: SES configuration set name for tracking
        """
        self.ses_client = boto3.client(
            "ses",
            region_name=region_name,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
        )
        self.configuration_set = configuration_set

    async def send_email(self, email: Email) -> EmailResult:
        """Send email through AWS SES."""
        message: Dict[str, Any] = {
            "Subject": {"Data": email.subject, "Charset": "UTF-8"},
            "Body": {"Text": {"Data": email.body_text, "Charset": "UTF-8"}},
        }
        if email.body_html:
            message["Body"]["Html"] = {"Data": email.body_html, "Charset": "UTF-8"}

        params: Dict[str, Any] = {
            "Source": email.from_email,
            "Destination": {"ToAddresses": email.to},
            "Message": message,
        }
        if self.configuration_set:
            params["ConfigurationSetName"] = self.configuration_set
        if email.tags:
            params["Tags"] = [
                {"Name": f"tag-{i}", "Value": tag}
                for i, tag in enumerate(email.tags[:10])  # SES allows max 10 tags
            ]

        try:
            response = await asyncio.to_thread(self.ses_client.send_email, **params)
        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            error_message = e.response["Error"]["Message"]
            logger.error("ses_send_failed", error_code=error_code, error=error_message)
            return EmailResult(
                message_id=None,
                status=EmailStatus.FAILED,
                error=f"{error_code}: {error_message}",
                provider_response=e.response,
            )
        except BotoCoreError as e:
            logger.error("ses_send_failed", error=str(e))
            return EmailResult(message_id=None, status=EmailStatus.FAILED, error=str(e))

        return EmailResult(
            message_id=response["MessageId"],
            status=EmailStatus.SENT,
            provider_response=response,
        )
