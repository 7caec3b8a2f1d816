"""Patient model, the root aggregate for all patient-owned data."""

from datetime import date
from typing import Any

from sqlalchemy import Boolean, Column, Date, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evexia.models.base import BaseModel, UpdatedAtMixin


class Patient(BaseModel, UpdatedAtMixin):
    """Patient identity and sharing preferences."""

    __tablename__ = "patients"

    # Linked session identity, assigned on first verified login
    auth_subject = Column(String(255), unique=True, nullable=True, index=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    phone = Column(String(50), nullable=True)

    allow_emergency_access = Column(Boolean, nullable=False, default=False)

    # Children are removed with the patient
    records = relationship(
        "MedicalRecord",
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    share_tokens = relationship(
        "ShareToken",
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    providers = relationship(
        "PatientProvider",
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    access_logs = relationship(
        "AccessLog",
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    summaries = relationship(
        "Summary",
        back_populates="patient",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __init__(self, **kwargs: Any) -> None:
        """Initialize patient, normalizing the email."""
        if kwargs.get("email"):
            kwargs["email"] = kwargs["email"].strip().lower()
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Patient(id={self.id})>"
