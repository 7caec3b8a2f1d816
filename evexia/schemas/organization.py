"""Organization directory models."""

from typing import List
from uuid import UUID

from evexia.schemas.base import CamelModel, SuccessResponse


class OrganizationOut(CamelModel):
    """Public organization entry."""

    id: UUID
    slug: str
    name: str


class OrganizationListResponse(SuccessResponse):
    """Active organizations."""

    organizations: List[OrganizationOut]
