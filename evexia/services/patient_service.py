"""Patient lookups and settings."""

import uuid
from datetime import date
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from evexia.core.exceptions import NotFoundError
from evexia.models import Patient
from evexia.models.base import parse_uuid
from evexia.services.base import BaseService
from evexia.utils.logging import get_logger

logger = get_logger(__name__)


class PatientService(BaseService[Patient]):
    """Service for patient identity and sharing preferences."""

    model_class = Patient
    resource_name = "Patient"

    def __init__(self, session: Session):
        """Initialize patient service."""
        super().__init__(session)

    def require(self, patient_id: Any) -> Patient:
        """Get a patient or raise not-found."""
        patient = self.get_by_id(patient_id)
        if patient is None:
            raise NotFoundError("Patient")
        return patient

    def get_by_email(self, email: str) -> Optional[Patient]:
        """Find a patient by email, case-insensitively."""
        stmt = select(Patient).where(Patient.email == email.strip().lower())
        return self.session.scalars(stmt).first()

    def find_by_name_and_dob(self, name: str, date_of_birth: date) -> Optional[Patient]:
        """Find the patient matching a name and date of birth.

        Names compare case-insensitively with surrounding whitespace ignored.
        """
        stmt = select(Patient).where(
            func.lower(Patient.name) == name.strip().lower(),
            Patient.date_of_birth == date_of_birth,
        )
        return self.session.scalars(stmt).first()

    def get_by_auth_subject(self, subject: str) -> Optional[Patient]:
        """Resolve the patient linked to a session subject."""
        stmt = select(Patient).where(Patient.auth_subject == subject)
        return self.session.scalars(stmt).first()

    def ensure_auth_subject(self, patient: Patient) -> str:
        """Link a session identity to the patient on first login."""
        if not patient.auth_subject:
            patient.auth_subject = str(uuid.uuid4())
            self.session.flush()
            logger.info("auth_subject_linked", patient_id=str(patient.id))
        return patient.auth_subject

    def set_emergency_access(self, patient_id: Any, allow: bool) -> Patient:
        """Toggle break-glass emergency access."""
        patient = self.require(patient_id)
        patient.allow_emergency_access = allow
        self.session.flush()
        logger.info(
            "emergency_access_updated",
            patient_id=str(patient.id),
            allow_emergency_access=allow,
        )
        return patient

    @staticmethod
    def same_patient(patient: Patient, patient_id: Any) -> bool:
        """Compare a patient to a raw id from the URL."""
        return patient.id == parse_uuid(patient_id)
