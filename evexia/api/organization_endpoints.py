"""Organization directory endpoints."""

from typing import Any, Dict

from fastapi import APIRouter
from sqlalchemy.orm import Session

from evexia.api.deps import db_dependency
from evexia.schemas import to_wire
from evexia.schemas.organization import OrganizationListResponse, OrganizationOut
from evexia.services import DirectoryService

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get("")
async def list_organizations(db: Session = db_dependency) -> Dict[str, Any]:
    """Active organizations providers can sign in under."""
    organizations = DirectoryService(db).list_active_organizations()
    return to_wire(
        OrganizationListResponse(
            organizations=[OrganizationOut.model_validate(org) for org in organizations]
        )
    )
