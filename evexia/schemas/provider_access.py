"""Request and response models for provider access."""

from datetime import date
from typing import Any, Dict, List, Optional

from evexia.access.payloads import Anomaly
from evexia.schemas.base import CamelModel, SuccessResponse
from evexia.schemas.patient import RecordOut


class TokenAccessRequest(CamelModel):
    """Access with a patient-issued share token."""

    token: Optional[str] = None
    employee_id: Optional[str] = None
    organization_slug: Optional[str] = None


class OTPAccessRequest(CamelModel):
    """Either phase of employee + patient passcode access."""

    action: Optional[str] = None
    patient_id: Optional[str] = None
    employee_id: Optional[str] = None
    organization_slug: Optional[str] = None
    code: Optional[str] = None


class EmergencyAccessRequest(CamelModel):
    """Break-glass access."""

    patient_id: Optional[str] = None
    employee_id: Optional[str] = None
    organization_slug: Optional[str] = None


class ScopedSummary(CamelModel):
    """Summary with anomalies narrowed to the granted scope."""

    clinician_summary: str
    patient_summary: str
    anomalies: List[Anomaly]
    has_full_access: bool
    scope_warning: Optional[str] = None


class ProviderAccessResponse(SuccessResponse):
    """Patient data released to a provider."""

    patient_name: str
    date_of_birth: date
    scope: List[str]
    records: List[RecordOut]
    summary: Optional[ScopedSummary] = None
    chart_data: Dict[str, Any]
    provider_name: Optional[str] = None
    provider_org: Optional[str] = None
    is_emergency_access: bool = False
    disclaimer: str


class OTPRequestedResponse(SuccessResponse):
    """Passcode sent; no data released yet."""

    masked_email: str
    scope: List[str]
    provider_name: str
    provider_org: str
    is_emergency_access: bool = False
