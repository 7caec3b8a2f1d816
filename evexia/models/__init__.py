"""Database models for Evexia."""

from evexia.models.access_log import AccessLog, AccessMethod
from evexia.models.base import Base, BaseModel
from evexia.models.organization import Employee, Organization
from evexia.models.patient import Patient
from evexia.models.provider import PatientProvider
from evexia.models.record import MedicalRecord
from evexia.models.share_token import ShareToken
from evexia.models.summary import Summary
from evexia.models.verification import VerificationCode, VerificationPurpose

__all__ = [
    "AccessLog",
    "AccessMethod",
    "Base",
    "BaseModel",
    "Employee",
    "MedicalRecord",
    "Organization",
    "Patient",
    "PatientProvider",
    "ShareToken",
    "Summary",
    "VerificationCode",
    "VerificationPurpose",
]
