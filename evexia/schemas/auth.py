"""Patient sign-in request and response models."""

from typing import Optional
from uuid import UUID

from evexia.schemas.base import CamelModel, SuccessResponse


class SendOTPRequest(CamelModel):
    """Start a sign-in by name and date of birth."""

    name: Optional[str] = None
    date_of_birth: Optional[str] = None


class SendOTPResponse(SuccessResponse):
    """Where the passcode went."""

    masked_email: str
    patient_id: UUID


class VerifyOTPRequest(CamelModel):
    """Redeem a sign-in passcode."""

    patient_id: Optional[str] = None
    code: Optional[str] = None


class VerifyOTPResponse(SuccessResponse):
    """Signed-in patient."""

    patient_id: UUID


class PatientIdentity(CamelModel):
    """Identity shown to the signed-in patient."""

    id: UUID
    name: str
    email: str


class SessionResponse(CamelModel):
    """Current session state."""

    authenticated: bool
    patient: Optional[PatientIdentity] = None
    bypass: bool = False
