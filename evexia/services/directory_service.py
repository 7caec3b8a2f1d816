"""Organization and employee directory lookups."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from evexia.models import Employee, Organization
from evexia.utils.logging import get_logger

logger = get_logger(__name__)


class DirectoryService:
    """Resolves organizations and their employees.

    Employee ids are only unique within one organization, so every employee
    lookup takes the organization's primary key.
    """

    def __init__(self, session: Session):
        """Initialize directory service."""
        self.session = session

    def list_active_organizations(self) -> List[Organization]:
        """Active organizations ordered by name."""
        stmt = (
            select(Organization)
            .where(Organization.is_active.is_(True))
            .order_by(Organization.name)
        )
        return list(self.session.scalars(stmt))

    def get_active_organization(self, slug: str) -> Optional[Organization]:
        """Resolve an active organization by slug."""
        stmt = select(Organization).where(
            Organization.slug == slug, Organization.is_active.is_(True)
        )
        return self.session.scalars(stmt).first()

    def get_active_employee(
        self, employee_id: str, organization_id: UUID
    ) -> Optional[Employee]:
        """Resolve an active employee within one organization."""
        stmt = select(Employee).where(
            Employee.employee_id == employee_id,
            Employee.organization_id == organization_id,
            Employee.is_active.is_(True),
        )
        return self.session.scalars(stmt).first()

    def get_emergency_staff(
        self, employee_id: str, organization_id: UUID
    ) -> Optional[Employee]:
        """Resolve an active employee who is flagged as emergency staff."""
        stmt = select(Employee).where(
            Employee.employee_id == employee_id,
            Employee.organization_id == organization_id,
            Employee.is_active.is_(True),
            Employee.is_emergency_staff.is_(True),
        )
        return self.session.scalars(stmt).first()
