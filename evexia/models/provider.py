"""Patient-granted provider authorizations."""

from typing import List, Optional
from uuid import UUID as PyUUID

from sqlalchemy import Column, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evexia.models.base import BaseModel, UpdatedAtMixin
from evexia.models.db_types import UUID, StringArray
from evexia.models.organization import Employee


class PatientProvider(BaseModel, UpdatedAtMixin):
    """A provider the patient has listed, with the scope they granted.

    Being a directory employee does not make someone an authorized provider:
    the OTP access flow requires a row here linked to that employee.
    """

    __tablename__ = "patient_providers"

    patient_id: Mapped[PyUUID] = mapped_column(
        UUID(), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False
    )
    employee_id: Mapped[Optional[PyUUID]] = mapped_column(
        UUID(), ForeignKey("employees.id", ondelete="SET NULL"), nullable=True
    )

    provider_name = Column(String(255), nullable=False)
    provider_org = Column(String(255), nullable=True)
    provider_email = Column(String(255), nullable=True)

    # Empty scope means listed as a contact with no access
    scope: Mapped[List[str]] = mapped_column(StringArray(), nullable=False, default=list)

    patient = relationship("Patient", back_populates="providers")
    employee: Mapped[Optional[Employee]] = relationship("Employee")

    __table_args__ = (
        UniqueConstraint(
            "patient_id", "employee_id", name="uq_patient_providers_patient_employee"
        ),
        Index("idx_patient_providers_patient", "patient_id"),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<PatientProvider(id={self.id}, patient={self.patient_id})>"
