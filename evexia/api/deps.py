"""Shared FastAPI dependencies.

Every collaborator an endpoint needs is built here so tests can swap it out
through ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from evexia.access.auth_mode import AuthPolicy
from evexia.access.engine import AccessAuthorizationEngine, RequestContext
from evexia.ai import ConsentExplainer, SummaryGenerator
from evexia.api.exceptions import AuthorizationError, ResourceNotFoundError
from evexia.config import Settings, get_settings
from evexia.core.database import get_db
from evexia.models import Patient
from evexia.services import OTPService, PatientService, SessionService
from evexia.services.email import EmailService, build_email_service
from evexia.utils.clock import utcnow

# Module-level dependency variables
db_dependency = Depends(get_db)


def get_app_settings() -> Settings:
    """Settings for the current request."""
    return get_settings()


settings_dependency = Depends(get_app_settings)


def get_auth_policy(settings: Settings = settings_dependency) -> AuthPolicy:
    """Auth policy derived from the configured auth mode."""
    return AuthPolicy.from_settings(settings)


@lru_cache()
def _default_email_service() -> EmailService:
    return build_email_service(get_settings())


def get_email_service() -> EmailService:
    """Email service used for passcodes."""
    return _default_email_service()


def get_otp_service(
    db: Session = db_dependency,
    email_service: EmailService = Depends(get_email_service),
    settings: Settings = settings_dependency,
) -> OTPService:
    """OTP service bound to the request session."""
    return OTPService(db, email_service, settings)


def get_session_service(settings: Settings = settings_dependency) -> SessionService:
    """Session token service."""
    return SessionService(settings)


def get_access_engine(
    db: Session = db_dependency,
    otp_service: OTPService = Depends(get_otp_service),
    policy: AuthPolicy = Depends(get_auth_policy),
) -> AccessAuthorizationEngine:
    """Access authorization engine bound to the request session."""
    return AccessAuthorizationEngine(db, otp_service, policy)


def get_summary_generator(settings: Settings = settings_dependency) -> SummaryGenerator:
    """Summary generator."""
    return SummaryGenerator(settings)


def get_consent_explainer(settings: Settings = settings_dependency) -> ConsentExplainer:
    """Consent explainer."""
    return ConsentExplainer(settings)


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


def get_request_context(request: Request) -> RequestContext:
    """Requester metadata and the clock snapshot for this request."""
    return RequestContext(
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        now=utcnow(),
    )


def get_session_patient(
    request: Request,
    db: Session = db_dependency,
    settings: Settings = settings_dependency,
    sessions: SessionService = Depends(get_session_service),
    policy: AuthPolicy = Depends(get_auth_policy),
) -> Optional[Patient]:
    """Patient signed in on this request, if any.

    Under dev bypass a request without a session resolves to the demo
    patient.
    """
    patients = PatientService(db)
    subject = sessions.decode_session_token(
        request.cookies.get(settings.session_cookie_name)
    )
    if subject:
        patient = patients.get_by_auth_subject(subject)
        if patient is not None:
            return patient

    fallback_id = policy.session_fallback_patient_id()
    if fallback_id:
        return patients.get_by_id(fallback_id)
    return None


def require_patient(
    patient_id: str,
    patient: Optional[Patient] = Depends(get_session_patient),
) -> Patient:
    """The signed-in patient, who must own ``patient_id``.

    Another patient's id answers not-found so ids cannot be probed.
    """
    if patient is None:
        raise AuthorizationError("Authentication required")
    if not PatientService.same_patient(patient, patient_id):
        raise ResourceNotFoundError("Patient")
    return patient
