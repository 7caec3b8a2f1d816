"""Medical record model."""

from datetime import date
from typing import Any, Dict, Optional
from uuid import UUID as PyUUID

from sqlalchemy import Column, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evexia.models.base import BaseModel
from evexia.models.db_types import JSONB, UUID


class MedicalRecord(BaseModel):
    """A record imported from one hospital source.

    ``data`` is stored as JSON and decoded into a typed payload per category
    by :func:`evexia.access.payloads.decode_record_payload`.
    """

    __tablename__ = "medical_records"

    patient_id: Mapped[PyUUID] = mapped_column(
        UUID(), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False
    )
    hospital = Column(String(255), nullable=False)
    category = Column(String(20), nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    record_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    source = Column(String(255), nullable=True)

    patient = relationship("Patient", back_populates="records")

    __table_args__ = (
        Index("idx_medical_records_patient_category", "patient_id", "category"),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<MedicalRecord(id={self.id}, category={self.category})>"
