"""Organization and employee directory models."""

from typing import List, Optional
from uuid import UUID as PyUUID

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from evexia.models.base import BaseModel
from evexia.models.db_types import UUID


class Organization(BaseModel):
    """A healthcare organization whose employees may request access."""

    __tablename__ = "organizations"

    slug = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    employees: Mapped[List["Employee"]] = relationship(
        "Employee", back_populates="organization", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Organization(slug={self.slug}, active={self.is_active})>"


class Employee(BaseModel):
    """Directory entry for a provider employed by an organization.

    ``employee_id`` is only unique inside its organization, so lookups always
    pair it with ``organization_id``.
    """

    __tablename__ = "employees"

    organization_id: Mapped[PyUUID] = mapped_column(
        UUID(), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False
    )
    employee_id = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_emergency_staff = Column(Boolean, nullable=False, default=False)

    organization: Mapped[Optional[Organization]] = relationship(
        "Organization", back_populates="employees"
    )

    __table_args__ = (
        UniqueConstraint(
            "organization_id", "employee_id", name="uq_employees_org_employee_id"
        ),
        Index("idx_employees_lookup", "employee_id", "organization_id"),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Employee(employee_id={self.employee_id}, org={self.organization_id})>"
