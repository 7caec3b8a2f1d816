"""Patient-managed provider authorizations."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from evexia.access.scope import parse_scope
from evexia.core.exceptions import ConflictError, ValidationError
from evexia.models import Employee, PatientProvider
from evexia.services.base import BaseService
from evexia.services.directory_service import DirectoryService
from evexia.utils.logging import get_logger

logger = get_logger(__name__)

EDITABLE_FIELDS = ("provider_name", "provider_org", "provider_email", "scope")


class ProviderService(BaseService[PatientProvider]):
    """CRUD over provider authorizations with ownership checks."""

    model_class = PatientProvider
    resource_name = "Provider"

    def __init__(self, session: Session):
        """Initialize provider service."""
        super().__init__(session)
        self.directory = DirectoryService(session)

    def list(self, patient_id: UUID) -> List[PatientProvider]:
        """Providers for a patient, oldest first."""
        stmt = (
            select(PatientProvider)
            .where(PatientProvider.patient_id == patient_id)
            .order_by(PatientProvider.created_at.asc())
        )
        return list(self.session.scalars(stmt))

    def create(
        self,
        patient_id: UUID,
        provider_name: Optional[str],
        provider_org: Optional[str] = None,
        provider_email: Optional[str] = None,
        scope: Any = None,
        organization_slug: Optional[str] = None,
        employee_id: Optional[str] = None,
    ) -> PatientProvider:
        """Add a provider, optionally linked to a directory employee."""
        if not provider_name or not provider_name.strip():
            raise ValidationError("Provider name is required", field="providerName")

        categories = parse_scope(scope)
        employee = self._resolve_employee(organization_slug, employee_id)
        if employee is not None:
            self._ensure_not_linked(patient_id, employee.id)

        provider = PatientProvider(
            patient_id=patient_id,
            employee_id=employee.id if employee else None,
            provider_name=provider_name.strip(),
            provider_org=provider_org,
            provider_email=provider_email,
            scope=categories,
        )
        provider.save(self.session)

        logger.info(
            "provider_authorized",
            patient_id=str(patient_id),
            provider_id=str(provider.id),
            linked_employee=employee is not None,
            scope=categories,
        )
        return provider

    def _resolve_employee(
        self, organization_slug: Optional[str], employee_id: Optional[str]
    ) -> Optional[Employee]:
        if not organization_slug and not employee_id:
            return None
        if not organization_slug or not employee_id:
            raise ValidationError(
                "organizationSlug and employeeId must be provided together",
                field="employeeId",
            )
        organization = self.directory.get_active_organization(organization_slug)
        employee = (
            self.directory.get_active_employee(employee_id, organization.id)
            if organization
            else None
        )
        if employee is None:
            raise ValidationError(
                "Employee not found for this organization", field="employeeId"
            )
        return employee

    def _ensure_not_linked(
        self, patient_id: UUID, employee_pk: UUID, exclude_id: Optional[UUID] = None
    ) -> None:
        existing = self.resolve_by_patient_and_employee(patient_id, employee_pk)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError("This provider is already authorized")

    def update(
        self, patient_id: UUID, provider_id: Any, patch: Dict[str, Any]
    ) -> PatientProvider:
        """Apply a partial update to a provider owned by ``patient_id``."""
        provider = self.get_owned(patient_id, provider_id)

        if "provider_name" in patch:
            name = patch["provider_name"]
            if not name or not str(name).strip():
                raise ValidationError("Provider name is required", field="providerName")
            patch["provider_name"] = str(name).strip()
        if "scope" in patch:
            patch["scope"] = parse_scope(patch["scope"])

        if "organization_slug" in patch or "employee_id" in patch:
            employee = self._resolve_employee(
                patch.get("organization_slug"), patch.get("employee_id")
            )
            if employee is not None:
                self._ensure_not_linked(patient_id, employee.id, exclude_id=provider.id)
            provider.employee_id = employee.id if employee else None

        for field in EDITABLE_FIELDS:
            if field in patch:
                setattr(provider, field, patch[field])

        self.session.flush()
        logger.info(
            "provider_updated",
            provider_id=str(provider.id),
            fields=sorted(k for k in patch if k in EDITABLE_FIELDS),
        )
        return provider

    def delete(self, patient_id: UUID, provider_id: Any) -> None:
        """Remove a provider owned by ``patient_id``."""
        provider = self.get_owned(patient_id, provider_id)
        self.session.delete(provider)
        self.session.flush()
        logger.info("provider_removed", provider_id=str(provider_id))

    def resolve_by_patient_and_employee(
        self, patient_id: UUID, employee_pk: UUID
    ) -> Optional[PatientProvider]:
        """The authorization a patient granted to one directory employee."""
        stmt = select(PatientProvider).where(
            PatientProvider.patient_id == patient_id,
            PatientProvider.employee_id == employee_pk,
        )
        return self.session.scalars(stmt).first()
