"""One-time passcodes sent to a patient's email.

Codes are stored as SHA-256 hashes and compared in constant time. Each
(email, purpose) pair has at most one redeemable code: issuing a new one
retires the previous.
"""

import hashlib
import hmac
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from evexia.config import Settings, get_settings
from evexia.core.exceptions import DeliveryError, RateLimitedError, VerificationError
from evexia.models import VerificationCode, VerificationPurpose
from evexia.services.email import Email, EmailService, EmailStatus
from evexia.utils.clock import utcnow
from evexia.utils.logging import get_logger
from evexia.utils.masking import mask_email

logger = get_logger(__name__)

SUBJECTS = {
    VerificationPurpose.PATIENT_LOGIN: "Your Evexia sign-in code",
    VerificationPurpose.PROVIDER_ACCESS: "A provider is requesting access to your records",
}


def hash_code(code: str) -> str:
    """Hash a passcode for storage."""
    return hashlib.sha256(code.encode("utf-8")).hexdigest()


class OTPService:
    """Issues, delivers and verifies one-time passcodes."""

    def __init__(
        self,
        session: Session,
        email_service: EmailService,
        settings: Optional[Settings] = None,
    ):
        """Initialize OTP service."""
        self.session = session
        self.email_service = email_service
        self.settings = settings or get_settings()

    def generate_code(self) -> str:
        """Random numeric code of the configured length."""
        return "".join(
            str(secrets.randbelow(10)) for _ in range(self.settings.otp_length)
        )

    def issue_code(
        self, email: str, purpose: VerificationPurpose, now: Optional[datetime] = None
    ) -> str:
        """Store a fresh code and return it in plain text.

        Raises:
            RateLimitedError: when the hourly send limit for the email is reached
        """
        now = now or utcnow()
        email = email.strip().lower()

        recent = self.session.scalar(
            select(func.count(VerificationCode.id)).where(
                VerificationCode.email == email,
                VerificationCode.created_at > now - timedelta(hours=1),
            )
        )
        if (recent or 0) >= self.settings.otp_max_sends_per_hour:
            logger.warning("otp_rate_limited", email=mask_email(email))
            raise RateLimitedError("Too many verification codes requested")

        # Retire outstanding codes for the same purpose
        self.session.execute(
            update(VerificationCode)
            .where(
                VerificationCode.email == email,
                VerificationCode.purpose == purpose.value,
                VerificationCode.verified_at.is_(None),
                VerificationCode.expires_at > now,
            )
            .values(expires_at=now)
        )

        code = self.generate_code()
        record = VerificationCode(
            email=email,
            purpose=purpose.value,
            code_hash=hash_code(code),
            expires_at=now + timedelta(minutes=self.settings.otp_ttl_minutes),
            attempts=0,
            created_at=now,
        )
        record.save(self.session)
        logger.info("otp_issued", email=mask_email(email), purpose=purpose.value)
        return code

    async def send_code(self, email: str, purpose: VerificationPurpose) -> None:
        """Issue a code and email it.

        Raises:
            DeliveryError: when the code could not be issued or delivered
        """
        code = self.issue_code(email, purpose)
        minutes = self.settings.otp_ttl_minutes
        message = Email(
            to=[email],
            subject=SUBJECTS[purpose],
            body_text=(
                f"Your verification code is {code}. "
                f"It expires in {minutes} minutes. "
                "If you did not request this code you can ignore this email."
            ),
            tags=[purpose.value],
        )
        result = await self.email_service.send_email(message)
        if result.status != EmailStatus.SENT:
            logger.error(
                "otp_delivery_failed",
                email=mask_email(email),
                purpose=purpose.value,
                error=result.error,
            )
            raise DeliveryError(result.error or "Email delivery failed")

    def verify_code(
        self,
        email: str,
        purpose: VerificationPurpose,
        code: str,
        now: Optional[datetime] = None,
    ) -> None:
        """Redeem a code.

        A mismatch commits the session so the attempt counter survives the
        rollback of the failing request. Callers must not have pending writes
        on the session when they call this; anything staged before it is
        committed along with the attempt.

        Raises:
            VerificationError: when there is no valid code or it does not match
        """
        now = now or utcnow()
        email = email.strip().lower()

        record = self.session.scalars(
            select(VerificationCode)
            .where(
                VerificationCode.email == email,
                VerificationCode.purpose == purpose.value,
                VerificationCode.verified_at.is_(None),
            )
            .order_by(VerificationCode.created_at.desc())
            .limit(1)
        ).first()

        if record is None or not record.is_valid(now, self.settings.otp_max_attempts):
            raise VerificationError("Invalid or expired verification code")

        record.attempts = (record.attempts or 0) + 1
        if not hmac.compare_digest(record.code_hash, hash_code(code.strip())):
            self.session.commit()
            logger.info(
                "otp_mismatch",
                email=mask_email(email),
                purpose=purpose.value,
                attempts=record.attempts,
            )
            raise VerificationError("Invalid or expired verification code")

        record.verified_at = now
        self.session.flush()
        logger.info("otp_verified", email=mask_email(email), purpose=purpose.value)
