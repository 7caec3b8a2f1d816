"""Patient-facing endpoints.

Every route here acts for the signed-in patient, who must own the patient id
in the path. Tokens and providers of other patients answer not-found.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from evexia.access.engine import RequestContext
from evexia.access.scope import FULL_SCOPE, parse_scope
from evexia.ai import ConsentExplainer, SummaryGenerator
from evexia.ai.prompts import MEDICAL_DISCLAIMER
from evexia.api.deps import (
    db_dependency,
    get_consent_explainer,
    get_request_context,
    get_summary_generator,
    require_patient,
    settings_dependency,
)
from evexia.api.exceptions import (
    CooldownActiveError,
    ResourceNotFoundError,
    UnprocessableError,
    ValidationError,
)
from evexia.api.presenters import record_out, summary_response
from evexia.config import Settings
from evexia.models import Patient
from evexia.schemas import SuccessResponse, to_wire
from evexia.schemas.patient import (
    AccessLogListResponse,
    AccessLogOut,
    ConsentExplainerRequest,
    CreateProviderRequest,
    CreateTokenRequest,
    CreateTokenResponse,
    PatientProfile,
    ProviderListResponse,
    ProviderOut,
    ProviderResponse,
    RecordsResponse,
    SettingsResponse,
    ShareTokenOut,
    SummaryResponse,
    TokenActionRequest,
    TokenListResponse,
    TokenResponse,
    UpdateProviderRequest,
    UpdateSettingsRequest,
)
from evexia.services import (
    AccessLogService,
    PatientService,
    ProviderService,
    RecordService,
    SummaryService,
    TokenService,
)
from evexia.utils.logging import get_logger
from evexia.utils.medical import extract_chart_data

router = APIRouter(prefix="/patient/{patient_id}", tags=["patient"])
logger = get_logger(__name__)

patient_dependency = Depends(require_patient)
context_dependency = Depends(get_request_context)

CATEGORY_SYNONYMS = {"medications": "meds"}


# Share tokens


@router.get("/tokens")
async def list_tokens(
    patient: Patient = patient_dependency,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
    context: RequestContext = context_dependency,
) -> Dict[str, Any]:
    """All share tokens with their current status."""
    tokens = TokenService(db, settings).list_by_patient(patient.id)
    return to_wire(
        TokenListResponse(
            tokens=[ShareTokenOut.from_model(token, context.now) for token in tokens]
        )
    )


@router.post("/tokens")
async def create_token(
    body: CreateTokenRequest,
    patient: Patient = patient_dependency,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
    context: RequestContext = context_dependency,
) -> Dict[str, Any]:
    """Issue a share token for the requested categories."""
    if not body.scope:
        raise ValidationError("Scope is required and must be a non-empty array", field="scope")

    token = TokenService(db, settings).create(
        patient.id, body.scope, ttl_hours=body.expiry_hours, now=context.now
    )
    return to_wire(
        CreateTokenResponse(
            id=token.id,
            token=token.token,
            scope=list(token.scope),
            expires_at=token.expires_at,
        )
    )


@router.patch("/tokens")
async def revoke_token(
    body: TokenActionRequest,
    patient: Patient = patient_dependency,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
    context: RequestContext = context_dependency,
) -> Dict[str, Any]:
    """Revoke a token. Revoking an already revoked token succeeds."""
    if not body.token_id or body.action != "revoke":
        raise ValidationError("Token ID and action=revoke required")

    token = TokenService(db, settings).revoke(patient.id, body.token_id, now=context.now)
    return to_wire(TokenResponse(token=ShareTokenOut.from_model(token, context.now)))


@router.delete("/tokens")
async def delete_token(
    token_id: Optional[str] = Query(default=None, alias="tokenId"),
    patient: Patient = patient_dependency,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
) -> Dict[str, Any]:
    """Delete a token."""
    if not token_id:
        raise ValidationError("Token ID is required", field="tokenId")

    TokenService(db, settings).delete(patient.id, token_id)
    return to_wire(SuccessResponse())


# Providers


@router.get("/providers")
async def list_providers(
    patient: Patient = patient_dependency, db: Session = db_dependency
) -> Dict[str, Any]:
    """Authorized providers."""
    providers = ProviderService(db).list(patient.id)
    return to_wire(
        ProviderListResponse(
            providers=[ProviderOut.model_validate(provider) for provider in providers]
        )
    )


@router.post("/providers")
async def create_provider(
    body: CreateProviderRequest,
    patient: Patient = patient_dependency,
    db: Session = db_dependency,
) -> Dict[str, Any]:
    """Authorize a provider, optionally linked to a directory employee."""
    provider = ProviderService(db).create(
        patient.id,
        provider_name=body.provider_name,
        provider_org=body.provider_org,
        provider_email=body.provider_email,
        scope=body.scope,
        organization_slug=body.organization_slug,
        employee_id=body.employee_id,
    )
    return to_wire(ProviderResponse(provider=ProviderOut.model_validate(provider)))


@router.patch("/providers")
async def update_provider(
    body: UpdateProviderRequest,
    patient: Patient = patient_dependency,
    db: Session = db_dependency,
) -> Dict[str, Any]:
    """Change the fields sent; others are left as they are."""
    if not body.provider_id:
        raise ValidationError("Provider ID is required", field="providerId")

    patch = body.model_dump(exclude_unset=True, exclude={"provider_id"})
    provider = ProviderService(db).update(patient.id, body.provider_id, patch)
    return to_wire(ProviderResponse(provider=ProviderOut.model_validate(provider)))


@router.delete("/providers")
async def delete_provider(
    provider_id: Optional[str] = Query(default=None, alias="providerId"),
    patient: Patient = patient_dependency,
    db: Session = db_dependency,
) -> Dict[str, Any]:
    """Remove a provider authorization."""
    if not provider_id:
        raise ValidationError("Provider ID is required", field="providerId")

    ProviderService(db).delete(patient.id, provider_id)
    return to_wire(SuccessResponse())


# Records


def _parse_categories(raw: Optional[str]) -> Optional[List[str]]:
    if not raw:
        return None
    values = [value.strip() for value in raw.split(",") if value.strip()]
    return parse_scope(values, field="categories")


@router.get("/records")
async def list_records(
    categories: Optional[str] = Query(default=None),
    patient: Patient = patient_dependency,
    db: Session = db_dependency,
) -> Dict[str, Any]:
    """Records newest first, optionally narrowed to comma-separated categories."""
    records = RecordService(db).list_for_patient(patient.id, _parse_categories(categories))
    return to_wire(
        RecordsResponse(
            patient=PatientProfile.model_validate(patient),
            records=[record_out(record) for record in records],
            chart_data=extract_chart_data(records),
        )
    )


# Summaries


@router.get("/summary")
async def get_summary(
    patient: Patient = patient_dependency,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
) -> Dict[str, Any]:
    """The latest generated summary."""
    summary = SummaryService(db, settings).get_latest(patient.id)
    if summary is None:
        raise ResourceNotFoundError(detail="No summary generated yet")
    return to_wire(summary_response(summary))


@router.post("/summary")
async def generate_summary(
    patient: Patient = patient_dependency,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
    generator: SummaryGenerator = Depends(get_summary_generator),
    context: RequestContext = context_dependency,
) -> Dict[str, Any]:
    """Generate a fresh summary, at most once per cooldown window."""
    summaries = SummaryService(db, settings)
    window = summaries.check_cooldown(patient.id, context.now)
    if not window.allowed:
        logger.info(
            "summary_cooldown_active",
            patient_id=str(patient.id),
            retry_after_ms=window.retry_after_ms,
        )
        raise CooldownActiveError(window.retry_after_ms)

    records = RecordService(db).list_for_patient(patient.id)
    if not records:
        raise UnprocessableError("No records found. Cannot generate summary.")

    generated = await generator.generate(records)
    summary = summaries.save(
        patient.id,
        generated.data.model_dump(mode="json"),
        used_fallback=generated.used_fallback,
        now=context.now,
    )

    data = generated.data
    return to_wire(
        SummaryResponse(
            clinician_summary=data.clinician_summary,
            patient_summary=data.patient_summary,
            anomalies=data.anomalies,
            equity_concerns=data.equity_concerns,
            predictions=data.predictions,
            model_used=data.model_used,
            used_fallback=generated.used_fallback,
            fallback_reason=generated.fallback_reason,
            generated_at=summary.created_at,
            disclaimer=MEDICAL_DISCLAIMER,
        )
    )


# Access logs


@router.get("/access-logs")
async def list_access_logs(
    patient: Patient = patient_dependency, db: Session = db_dependency
) -> Dict[str, Any]:
    """Who accessed the patient's records, newest first."""
    entries = AccessLogService(db).list_for_patient(patient.id)
    return to_wire(
        AccessLogListResponse(
            logs=[AccessLogOut.from_model(entry, token) for entry, token in entries]
        )
    )


# Settings


@router.get("/settings")
async def get_settings_endpoint(patient: Patient = patient_dependency) -> Dict[str, Any]:
    """Sharing preferences."""
    return to_wire(
        SettingsResponse(allow_emergency_access=bool(patient.allow_emergency_access))
    )


@router.patch("/settings")
async def update_settings(
    body: UpdateSettingsRequest,
    patient: Patient = patient_dependency,
    db: Session = db_dependency,
) -> Dict[str, Any]:
    """Enable or disable break-glass emergency access."""
    if not isinstance(body.allow_emergency_access, bool):
        raise ValidationError(
            "allowEmergencyAccess must be a boolean", field="allowEmergencyAccess"
        )

    updated = PatientService(db).set_emergency_access(
        patient.id, body.allow_emergency_access
    )
    return to_wire(
        SettingsResponse(allow_emergency_access=bool(updated.allow_emergency_access))
    )


# Consent explainer


def _consent_categories(record_types: Optional[List[str]]) -> List[str]:
    if not record_types:
        raise ValidationError("At least one record type is required", field="recordTypes")

    normalized = [CATEGORY_SYNONYMS.get(value, value) for value in record_types]
    invalid = [value for value in normalized if value not in FULL_SCOPE]
    if invalid:
        raise ValidationError(
            f"Invalid record types: {', '.join(invalid)}", field="recordTypes"
        )
    return list(dict.fromkeys(normalized))


@router.post("/consent-explainer")
async def explain_consent(
    body: ConsentExplainerRequest,
    patient: Patient = patient_dependency,
    explainer: ConsentExplainer = Depends(get_consent_explainer),
) -> Dict[str, Any]:
    """Explain what sharing the chosen categories would reveal."""
    categories = _consent_categories(body.record_types)
    explanation = await explainer.explain(categories, body.purpose)
    logger.info(
        "consent_explained", patient_id=str(patient.id), categories=categories
    )
    return {"success": True, **explanation.model_dump(by_alias=True)}
