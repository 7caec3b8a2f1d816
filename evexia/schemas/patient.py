"""Request and response models for the patient API."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field

from evexia.access.payloads import Anomaly
from evexia.ai.types import EquityConcern, Prediction
from evexia.models import AccessLog, ShareToken
from evexia.schemas.base import CamelModel, SuccessResponse

# Share tokens


class ShareTokenOut(CamelModel):
    """A share token as listed to its owner."""

    id: UUID
    token: str
    scope: List[str]
    expires_at: datetime
    revoked_at: Optional[datetime] = None
    created_at: datetime
    status: str

    @classmethod
    def from_model(cls, token: ShareToken, now: datetime) -> "ShareTokenOut":
        """Build from the ORM row with its status at ``now``."""
        return cls(
            id=token.id,
            token=token.token,
            scope=list(token.scope),
            expires_at=token.expires_at,
            revoked_at=token.revoked_at,
            created_at=token.created_at,
            status=token.status(now),
        )


class CreateTokenRequest(CamelModel):
    """Issue a share token."""

    scope: Optional[List[str]] = None
    expiry_hours: Optional[float] = None


class CreateTokenResponse(SuccessResponse):
    """Newly issued token."""

    id: UUID
    token: str
    scope: List[str]
    expires_at: datetime


class TokenActionRequest(CamelModel):
    """Act on an existing token."""

    token_id: Optional[str] = None
    action: Optional[str] = None


class TokenListResponse(SuccessResponse):
    """All tokens for a patient."""

    tokens: List[ShareTokenOut]


class TokenResponse(SuccessResponse):
    """One token."""

    token: ShareTokenOut


# Providers


class ProviderOut(CamelModel):
    """A provider authorization."""

    id: UUID
    provider_name: str
    provider_org: Optional[str] = None
    provider_email: Optional[str] = None
    scope: List[str] = Field(default_factory=list)
    linked_employee_id: Optional[UUID] = Field(default=None, validation_alias="employee_id")
    created_at: datetime
    updated_at: Optional[datetime] = None


class CreateProviderRequest(CamelModel):
    """Authorize a provider."""

    provider_name: Optional[str] = None
    provider_org: Optional[str] = None
    provider_email: Optional[str] = None
    scope: Optional[List[str]] = None
    organization_slug: Optional[str] = None
    employee_id: Optional[str] = None


class UpdateProviderRequest(CreateProviderRequest):
    """Partially update a provider; only fields sent are changed."""

    provider_id: Optional[str] = None


class ProviderListResponse(SuccessResponse):
    """All providers for a patient."""

    providers: List[ProviderOut]


class ProviderResponse(SuccessResponse):
    """One provider."""

    provider: ProviderOut


# Records


class RecordOut(CamelModel):
    """A medical record with its typed payload."""

    id: UUID
    hospital: str
    category: str
    data: Dict[str, Any]
    record_date: Optional[date] = None
    source: Optional[str] = None


class PatientProfile(CamelModel):
    """Patient header shown alongside records."""

    id: UUID
    name: str
    date_of_birth: date


class RecordsResponse(SuccessResponse):
    """Records plus chart series."""

    patient: PatientProfile
    records: List[RecordOut]
    chart_data: Dict[str, Any]


# Summaries


class SummaryResponse(SuccessResponse):
    """A stored or freshly generated summary."""

    clinician_summary: str
    patient_summary: str
    anomalies: List[Anomaly] = Field(default_factory=list)
    equity_concerns: List[EquityConcern] = Field(default_factory=list)
    predictions: List[Prediction] = Field(default_factory=list)
    model_used: Optional[str] = None
    used_fallback: bool = False
    fallback_reason: Optional[str] = None
    generated_at: datetime
    disclaimer: str


# Access logs


class AccessLogOut(CamelModel):
    """One audit entry as shown to the patient."""

    id: UUID
    token_id: Optional[UUID] = None
    token: Optional[str] = None
    provider_name: Optional[str] = None
    provider_org: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    access_method: str
    scope: List[str]
    is_emergency_access: bool
    accessed_at: datetime

    @classmethod
    def from_model(cls, entry: AccessLog, token: Optional[str]) -> "AccessLogOut":
        """Build from the ORM row and its joined token value."""
        return cls(
            id=entry.id,
            token_id=entry.token_id,
            token=token,
            provider_name=entry.provider_name,
            provider_org=entry.provider_org,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            access_method=entry.access_method,
            scope=list(entry.scope or []),
            is_emergency_access=bool(entry.is_emergency_access),
            accessed_at=entry.accessed_at,
        )


class AccessLogListResponse(SuccessResponse):
    """Audit trail, newest first."""

    logs: List[AccessLogOut]


# Settings


class SettingsResponse(SuccessResponse):
    """Sharing preferences."""

    allow_emergency_access: bool


class UpdateSettingsRequest(CamelModel):
    """Change sharing preferences."""

    allow_emergency_access: Any = None


# Consent explainer


class ConsentExplainerRequest(CamelModel):
    """Categories the patient is considering sharing."""

    record_types: Optional[List[str]] = None
    purpose: Optional[str] = None
