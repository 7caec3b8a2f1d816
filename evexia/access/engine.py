"""Provider access authorization.

Each access method resolves, in order, the organization, the employee and a
capability (a share token, a patient-granted provider authorization, or the
patient's emergency opt-in). A grant carries the effective scope and is
written to the access log before any patient data is read. A denial raises
and leaves no trace in the access log.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from evexia.access.auth_mode import AuthPolicy
from evexia.access.scope import FULL_SCOPE
from evexia.core.exceptions import (
    AccessDeniedError,
    DeliveryError,
    NotFoundError,
    ValidationError,
    VerificationError,
)
from evexia.models import (
    AccessLog,
    AccessMethod,
    Employee,
    Organization,
    Patient,
    PatientProvider,
    VerificationPurpose,
)
from evexia.services.access_log_service import AccessLogService
from evexia.services.directory_service import DirectoryService
from evexia.services.otp_service import OTPService
from evexia.services.patient_service import PatientService
from evexia.services.provider_service import ProviderService
from evexia.services.token_service import TokenService
from evexia.utils.clock import utcnow
from evexia.utils.logging import audit_logger, get_logger

logger = get_logger(__name__)

INVALID_ORGANIZATION = "Invalid organization"
INVALID_TOKEN = "Invalid or expired token"
INVALID_EMPLOYEE = "Invalid employee ID for this organization"
PROVIDER_NOT_AUTHORIZED = (
    "This provider is not authorized to access this patient. "
    "The patient must first add the provider to their authorized list."
)
PROVIDER_NOT_AUTHORIZED_SHORT = "Provider not authorized for this patient"
EMERGENCY_ORGANIZATION = "Organization not found or inactive"
NOT_EMERGENCY_STAFF = "Employee is not designated as emergency staff"
EMERGENCY_NOT_ENABLED = "Patient has not enabled emergency access"
INVALID_CODE = "Invalid or expired verification code"


@dataclass
class RequestContext:
    """Requester metadata and the single clock reading for one request."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    now: datetime = field(default_factory=utcnow)


@dataclass
class AccessGrant:
    """A successful, already-audited access decision."""

    patient: Patient
    scope: List[str]
    method: AccessMethod
    provider_name: Optional[str]
    provider_org: Optional[str]
    is_emergency_access: bool = False
    token_id: Optional[UUID] = None
    access_log: Optional[AccessLog] = None


@dataclass
class ProviderChallenge:
    """Resolution shared by both phases of employee-OTP access."""

    organization: Organization
    patient: Patient
    employee: Employee
    provider: PatientProvider

    @property
    def scope(self) -> List[str]:
        """The scope the patient granted this provider."""
        return list(self.provider.scope or [])


def _require(message: str, *values: Any) -> None:
    if any(not value for value in values):
        raise ValidationError(message)


class AccessAuthorizationEngine:
    """Decides provider access for the token, employee-OTP and emergency flows.

    Lookups share one database session and therefore run in sequence.
    """

    def __init__(
        self,
        session: Session,
        otp_service: OTPService,
        policy: AuthPolicy,
    ):
        """Initialize the engine with its collaborators and auth policy."""
        self.session = session
        self.otp_service = otp_service
        self.policy = policy
        self.directory = DirectoryService(session)
        self.patients = PatientService(session)
        self.providers = ProviderService(session)
        self.tokens = TokenService(session)
        self.access_logs = AccessLogService(session)

    def _deny(
        self,
        method: AccessMethod,
        reason: str,
        organization_slug: Optional[str] = None,
        patient_id: Optional[Any] = None,
    ) -> AccessDeniedError:
        audit_logger.log_denial(
            access_method=method.value,
            reason=reason,
            organization_slug=organization_slug,
            patient_id=str(patient_id) if patient_id else None,
        )
        return AccessDeniedError(reason)

    def _grant(self, grant: AccessGrant, context: RequestContext) -> AccessGrant:
        grant.access_log = self.access_logs.log_access(
            patient_id=grant.patient.id,
            access_method=grant.method,
            scope=grant.scope,
            provider_name=grant.provider_name,
            provider_org=grant.provider_org,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            token_id=grant.token_id,
            is_emergency_access=grant.is_emergency_access,
        )
        audit_logger.log_grant(
            patient_id=str(grant.patient.id),
            access_method=grant.method.value,
            scope=grant.scope,
            provider_org=grant.provider_org,
            is_emergency_access=grant.is_emergency_access,
        )
        return grant

    # Token access

    def authorize_token(
        self,
        token: Optional[str],
        employee_id: Optional[str],
        organization_slug: Optional[str],
        context: RequestContext,
    ) -> AccessGrant:
        """Grant the token's own scope.

        The token is the capability. The organization must resolve; the
        employee is looked up for the audit trail only and a miss does not
        block access.
        """
        _require(
            "Token, employee ID, and organization are required",
            token,
            employee_id,
            organization_slug,
        )

        organization = self.directory.get_active_organization(organization_slug)  # type: ignore[arg-type]
        if organization is None:
            raise self._deny(AccessMethod.TOKEN, INVALID_ORGANIZATION, organization_slug)

        share_token = self.tokens.resolve_valid(token, context.now)  # type: ignore[arg-type]
        if share_token is None:
            raise self._deny(AccessMethod.TOKEN, INVALID_TOKEN, organization_slug)

        employee = self.directory.get_active_employee(employee_id, organization.id)  # type: ignore[arg-type]
        if employee is None:
            logger.warning(
                "token_access_unknown_employee",
                organization_slug=organization_slug,
                token_id=str(share_token.id),
            )

        patient = self.patients.get_by_id(share_token.patient_id)
        if patient is None:
            raise NotFoundError("Patient")

        return self._grant(
            AccessGrant(
                patient=patient,
                scope=list(share_token.scope),
                method=AccessMethod.EMPLOYEE_ID if employee else AccessMethod.TOKEN,
                provider_name=employee.name if employee else None,
                provider_org=organization.name,
                token_id=share_token.id,
            ),
            context,
        )

    # Employee + patient OTP access

    def resolve_provider_challenge(
        self,
        patient_id: Optional[str],
        employee_id: Optional[str],
        organization_slug: Optional[str],
        not_authorized_reason: str = PROVIDER_NOT_AUTHORIZED,
    ) -> ProviderChallenge:
        """Resolve organization, patient, employee and provider authorization.

        Both OTP phases run this so they agree on the same provider record.
        An authorization with an empty scope grants nothing and is denied.
        """
        organization = self.directory.get_active_organization(organization_slug)  # type: ignore[arg-type]
        if organization is None:
            raise self._deny(AccessMethod.OTP, INVALID_ORGANIZATION, organization_slug)

        patient = self.patients.get_by_id(patient_id)
        if patient is None:
            raise NotFoundError("Patient")

        employee = self.directory.get_active_employee(employee_id, organization.id)  # type: ignore[arg-type]
        if employee is None:
            raise self._deny(
                AccessMethod.OTP, INVALID_EMPLOYEE, organization_slug, patient.id
            )

        provider = self.providers.resolve_by_patient_and_employee(patient.id, employee.id)
        if provider is None or not provider.scope:
            raise self._deny(
                AccessMethod.OTP, not_authorized_reason, organization_slug, patient.id
            )

        return ProviderChallenge(
            organization=organization,
            patient=patient,
            employee=employee,
            provider=provider,
        )

    async def request_otp(
        self,
        patient_id: Optional[str],
        employee_id: Optional[str],
        organization_slug: Optional[str],
    ) -> ProviderChallenge:
        """Phase one: email the patient a passcode. Grants nothing."""
        _require(
            "Patient ID, employee ID, and organization are required",
            patient_id,
            employee_id,
            organization_slug,
        )
        challenge = self.resolve_provider_challenge(
            patient_id, employee_id, organization_slug
        )

        email = challenge.patient.email
        try:
            await self.otp_service.send_code(email, VerificationPurpose.PROVIDER_ACCESS)
        except DeliveryError:
            if not self.policy.tolerates_send_failure(email):
                raise
            logger.warning(
                "demo_otp_send_failed",
                patient_id=str(challenge.patient.id),
                exc_info=True,
            )

        logger.info(
            "provider_otp_requested",
            patient_id=str(challenge.patient.id),
            provider_id=str(challenge.provider.id),
        )
        return challenge

    def verify_otp(
        self,
        patient_id: Optional[str],
        employee_id: Optional[str],
        organization_slug: Optional[str],
        code: Optional[str],
        context: RequestContext,
    ) -> AccessGrant:
        """Phase two: redeem the passcode and grant the provider's scope."""
        _require(
            "Patient ID, employee ID, organization, and verification code are required",
            patient_id,
            employee_id,
            organization_slug,
            code,
        )
        challenge = self.resolve_provider_challenge(
            patient_id,
            employee_id,
            organization_slug,
            not_authorized_reason=PROVIDER_NOT_AUTHORIZED_SHORT,
        )

        email = challenge.patient.email
        # Only reads so far; verify_code commits its attempt counter on a mismatch
        if not self.policy.accepts_demo_code(email, code):
            try:
                self.otp_service.verify_code(
                    email, VerificationPurpose.PROVIDER_ACCESS, code, now=context.now  # type: ignore[arg-type]
                )
            except VerificationError as e:
                logger.info(
                    "provider_otp_rejected", patient_id=str(challenge.patient.id)
                )
                raise VerificationError(INVALID_CODE) from e

        return self._grant(
            AccessGrant(
                patient=challenge.patient,
                scope=challenge.scope,
                method=AccessMethod.OTP,
                provider_name=challenge.employee.name,
                provider_org=challenge.organization.name,
            ),
            context,
        )

    # Emergency access

    def authorize_emergency(
        self,
        patient_id: Optional[str],
        employee_id: Optional[str],
        organization_slug: Optional[str],
        context: RequestContext,
    ) -> AccessGrant:
        """Break-glass access with full scope.

        Requires an active organization, an active emergency-staff employee
        and a patient who opted in.
        """
        _require(
            "Patient ID, employee ID, and organization are required",
            patient_id,
            employee_id,
            organization_slug,
        )

        organization = self.directory.get_active_organization(organization_slug)  # type: ignore[arg-type]
        if organization is None:
            raise self._deny(
                AccessMethod.EMERGENCY, EMERGENCY_ORGANIZATION, organization_slug
            )

        employee = self.directory.get_emergency_staff(employee_id, organization.id)  # type: ignore[arg-type]
        if employee is None:
            raise self._deny(
                AccessMethod.EMERGENCY, NOT_EMERGENCY_STAFF, organization_slug
            )

        patient = self.patients.get_by_id(patient_id)
        if patient is None:
            raise NotFoundError("Patient")

        if not patient.allow_emergency_access:
            raise self._deny(
                AccessMethod.EMERGENCY, EMERGENCY_NOT_ENABLED, organization_slug, patient.id
            )

        logger.warning(
            "emergency_access_granted",
            patient_id=str(patient.id),
            organization_slug=organization_slug,
        )
        return self._grant(
            AccessGrant(
                patient=patient,
                scope=list(FULL_SCOPE),
                method=AccessMethod.EMERGENCY,
                provider_name=employee.name,
                provider_org=organization.name,
                is_emergency_access=True,
            ),
            context,
        )
