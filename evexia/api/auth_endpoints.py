"""Patient sign-in endpoints.

Patients identify themselves by name and date of birth, receive a passcode
at their registered email and exchange it for a session cookie.
"""

from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from evexia.access.auth_mode import AuthPolicy
from evexia.access.engine import RequestContext
from evexia.api.deps import (
    db_dependency,
    get_auth_policy,
    get_otp_service,
    get_request_context,
    get_session_service,
    settings_dependency,
)
from evexia.api.exceptions import ResourceNotFoundError, ValidationError
from evexia.config import Settings
from evexia.core.exceptions import DeliveryError, VerificationError
from evexia.models import VerificationPurpose
from evexia.schemas import SuccessResponse, to_wire
from evexia.schemas.auth import (
    PatientIdentity,
    SendOTPRequest,
    SendOTPResponse,
    SessionResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from evexia.services import OTPService, PatientService, SessionService
from evexia.utils.logging import audit_logger, get_logger
from evexia.utils.masking import mask_email

router = APIRouter(prefix="/auth", tags=["authentication"])
logger = get_logger(__name__)


def _parse_date_of_birth(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise ValidationError(
            "dateOfBirth must be a date in YYYY-MM-DD format", field="dateOfBirth"
        ) from e


@router.post("/send-otp")
async def send_otp(
    body: SendOTPRequest,
    db: Session = db_dependency,
    otp_service: OTPService = Depends(get_otp_service),
    policy: AuthPolicy = Depends(get_auth_policy),
) -> Dict[str, Any]:
    """Email a sign-in passcode to the patient matching name and birth date."""
    if not body.name or not body.date_of_birth:
        raise ValidationError("Name and date of birth are required")

    date_of_birth = _parse_date_of_birth(body.date_of_birth)
    patient = PatientService(db).find_by_name_and_dob(body.name, date_of_birth)
    if patient is None:
        raise ResourceNotFoundError(
            detail="No patient found with that name and date of birth"
        )

    try:
        await otp_service.send_code(patient.email, VerificationPurpose.PATIENT_LOGIN)
    except DeliveryError:
        if not policy.tolerates_send_failure(patient.email):
            raise
        logger.warning(
            "demo_login_otp_send_failed", patient_id=str(patient.id), exc_info=True
        )

    return to_wire(
        SendOTPResponse(masked_email=mask_email(patient.email), patient_id=patient.id)
    )


@router.post("/verify-otp")
async def verify_otp(
    body: VerifyOTPRequest,
    response: Response,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
    otp_service: OTPService = Depends(get_otp_service),
    sessions: SessionService = Depends(get_session_service),
    policy: AuthPolicy = Depends(get_auth_policy),
    context: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """Redeem a sign-in passcode and start a session."""
    if not body.patient_id or not body.code:
        raise ValidationError("Patient ID and verification code are required")

    patients = PatientService(db)
    patient = patients.get_by_id(body.patient_id)
    if patient is None:
        raise ResourceNotFoundError("Patient")

    # verify_code commits on a mismatch; nothing may be staged before it
    if not policy.accepts_demo_code(patient.email, body.code):
        try:
            otp_service.verify_code(
                patient.email,
                VerificationPurpose.PATIENT_LOGIN,
                body.code,
                now=context.now,
            )
        except VerificationError:
            audit_logger.log_authentication(
                str(patient.id), "verify_otp", False, context.ip_address
            )
            raise

    subject = patients.ensure_auth_subject(patient)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=sessions.create_session_token(subject, now=context.now),
        max_age=sessions.max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
    )
    audit_logger.log_authentication(str(patient.id), "verify_otp", True, context.ip_address)

    return to_wire(VerifyOTPResponse(patient_id=patient.id))


@router.get("/session")
async def get_session(
    request: Request,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
    sessions: SessionService = Depends(get_session_service),
    policy: AuthPolicy = Depends(get_auth_policy),
) -> Dict[str, Any]:
    """Describe the current session."""
    patients = PatientService(db)

    fallback_id: Optional[str] = policy.session_fallback_patient_id()
    if fallback_id:
        demo_patient = patients.get_by_id(fallback_id)
        if demo_patient is not None:
            return to_wire(
                SessionResponse(
                    authenticated=True,
                    patient=PatientIdentity.model_validate(demo_patient),
                    bypass=True,
                )
            )

    subject = sessions.decode_session_token(
        request.cookies.get(settings.session_cookie_name)
    )
    if not subject:
        return to_wire(SessionResponse(authenticated=False))

    patient = patients.get_by_auth_subject(subject)
    return to_wire(
        SessionResponse(
            authenticated=True,
            patient=PatientIdentity.model_validate(patient) if patient else None,
        )
    )


@router.delete("/session")
async def sign_out(response: Response, settings: Settings = settings_dependency) -> Dict[str, Any]:
    """End the session."""
    response.delete_cookie(settings.session_cookie_name)
    return to_wire(SuccessResponse())
