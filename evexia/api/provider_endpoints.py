"""Provider access endpoints.

A provider reaches patient data with a share token, with an employee ID plus
a passcode the patient reads out, or through emergency access. Each granted
access is written to the access log before any record is read.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from evexia.access.engine import AccessAuthorizationEngine, AccessGrant, RequestContext
from evexia.api.deps import (
    db_dependency,
    get_access_engine,
    get_request_context,
    settings_dependency,
)
from evexia.api.exceptions import ValidationError
from evexia.api.presenters import provider_access_response
from evexia.config import Settings
from evexia.schemas import to_wire
from evexia.schemas.provider_access import (
    EmergencyAccessRequest,
    OTPAccessRequest,
    OTPRequestedResponse,
    TokenAccessRequest,
)
from evexia.services import RecordService, SummaryService
from evexia.utils.masking import mask_email

router = APIRouter(prefix="/provider", tags=["provider"])

engine_dependency = Depends(get_access_engine)
context_dependency = Depends(get_request_context)

REQUEST_OTP = "request-otp"
VERIFY_OTP = "verify-otp"


def _release(grant: AccessGrant, db: Session, settings: Settings) -> Dict[str, Any]:
    return to_wire(
        provider_access_response(grant, RecordService(db), SummaryService(db, settings))
    )


@router.post("/access")
async def token_access(
    body: TokenAccessRequest,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
    engine: AccessAuthorizationEngine = engine_dependency,
    context: RequestContext = context_dependency,
) -> Dict[str, Any]:
    """Release the categories a share token covers."""
    grant = engine.authorize_token(
        body.token, body.employee_id, body.organization_slug, context
    )
    return _release(grant, db, settings)


@router.post("/otp-access")
async def otp_access(
    body: OTPAccessRequest,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
    engine: AccessAuthorizationEngine = engine_dependency,
    context: RequestContext = context_dependency,
) -> Dict[str, Any]:
    """Two-phase access: ``request-otp`` emails the patient, ``verify-otp`` redeems."""
    if body.action == REQUEST_OTP:
        challenge = await engine.request_otp(
            body.patient_id, body.employee_id, body.organization_slug
        )
        return to_wire(
            OTPRequestedResponse(
                masked_email=mask_email(challenge.patient.email),
                scope=challenge.scope,
                provider_name=challenge.employee.name,
                provider_org=challenge.organization.name,
            )
        )

    if body.action == VERIFY_OTP:
        grant = engine.verify_otp(
            body.patient_id,
            body.employee_id,
            body.organization_slug,
            body.code,
            context,
        )
        return _release(grant, db, settings)

    raise ValidationError("Invalid action", field="action")


@router.post("/emergency-access")
async def emergency_access(
    body: EmergencyAccessRequest,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
    engine: AccessAuthorizationEngine = engine_dependency,
    context: RequestContext = context_dependency,
) -> Dict[str, Any]:
    """Break-glass access to every category."""
    grant = engine.authorize_emergency(
        body.patient_id, body.employee_id, body.organization_slug, context
    )
    return _release(grant, db, settings)
