"""Generated summary model."""

from typing import Any, Dict, List
from uuid import UUID as PyUUID

from sqlalchemy import Boolean, Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evexia.models.base import BaseModel
from evexia.models.db_types import JSONB, UUID


class Summary(BaseModel):
    """Latest clinician and patient summary for a patient."""

    __tablename__ = "summaries"

    patient_id: Mapped[PyUUID] = mapped_column(
        UUID(), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False
    )
    clinician_summary = Column(Text, nullable=False)
    patient_summary = Column(Text, nullable=False)
    anomalies: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list
    )
    equity_concerns: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list
    )
    predictions: Mapped[List[Dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list
    )
    model_used = Column(String(255), nullable=True)
    used_fallback = Column(Boolean, nullable=False, default=False)

    patient = relationship("Patient", back_populates="summaries")

    __table_args__ = (Index("idx_summaries_patient_created", "patient_id", "created_at"),)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Summary(patient={self.patient_id}, model={self.model_used})>"
