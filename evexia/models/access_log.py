"""Access log model for auditing provider access to patient records."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID as PyUUID

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evexia.models.base import BaseModel
from evexia.models.db_types import UUID, StringArray
from evexia.utils.clock import utcnow


class AccessMethod(str, Enum):
    """How a provider reached the patient's records."""

    EMPLOYEE_ID = "employee_id"
    OTP = "otp"
    TOKEN = "token"
    EMERGENCY = "emergency"


class AccessLog(BaseModel):
    """Append-only audit entry for a granted access."""

    __tablename__ = "access_logs"

    token_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(), ForeignKey("share_tokens.id", ondelete="SET NULL"), nullable=True
    )
    patient_id: Mapped[PyUUID] = mapped_column(
        UUID(), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False
    )

    provider_name = Column(String(255), nullable=True)
    provider_org = Column(String(255), nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    access_method = Column(String(20), nullable=False)
    scope: Mapped[List[str]] = mapped_column(StringArray(), nullable=False, default=list)
    is_emergency_access = Column(Boolean, nullable=False, default=False)

    accessed_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, index=True
    )

    patient = relationship("Patient", back_populates="access_logs")
    token = relationship("ShareToken")

    __table_args__ = (
        Index("idx_access_logs_patient_accessed", "patient_id", "accessed_at"),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<AccessLog(patient={self.patient_id}, method={self.access_method}, "
            f"at={self.accessed_at})>"
        )
