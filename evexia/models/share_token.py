"""Share token model."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID as PyUUID

from sqlalchemy import Column, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evexia.models.base import BaseModel
from evexia.models.db_types import UUID, StringArray


class ShareToken(BaseModel):
    """Opaque bearer credential granting scoped, time-limited access."""

    __tablename__ = "share_tokens"

    patient_id: Mapped[PyUUID] = mapped_column(
        UUID(), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False
    )
    token = Column(String(128), unique=True, nullable=False, index=True)
    scope: Mapped[List[str]] = mapped_column(StringArray(), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    patient = relationship("Patient", back_populates="share_tokens")

    __table_args__ = (Index("idx_share_tokens_patient", "patient_id"),)

    def is_valid(self, now: datetime) -> bool:
        """Valid iff not revoked and not yet expired at ``now``."""
        return self.revoked_at is None and now < self.expires_at

    def status(self, now: datetime) -> str:
        """Derived lifecycle status."""
        if self.revoked_at is not None:
            return "revoked"
        if now >= self.expires_at:
            return "expired"
        return "active"

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<ShareToken(id={self.id}, patient={self.patient_id})>"
