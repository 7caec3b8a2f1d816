"""One-time passcode model."""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from evexia.models.base import BaseModel


class VerificationPurpose(str, Enum):
    """What a passcode unlocks."""

    PATIENT_LOGIN = "patient_login"
    PROVIDER_ACCESS = "provider_access"


class VerificationCode(BaseModel):
    """Hashed one-time passcode sent to a patient's email."""

    __tablename__ = "verification_codes"

    email = Column(String(255), nullable=False)
    purpose = Column(
        String(50),
        nullable=False,
        comment="Purpose: patient_login, provider_access",
    )
    code_hash = Column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    attempts = Column(Integer, nullable=False, default=0)
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_verification_codes_email_purpose", "email", "purpose"),
        Index("idx_verification_codes_expires", "expires_at"),
    )

    def is_valid(self, now: datetime, max_attempts: int) -> bool:
        """Check if the code can still be redeemed."""
        if self.verified_at is not None:
            return False

        if (self.attempts or 0) >= max_attempts:
            return False

        return self.expires_at > now

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<VerificationCode(email={self.email}, purpose={self.purpose})>"
