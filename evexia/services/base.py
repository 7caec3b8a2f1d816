"""Base service class for common functionality."""

from typing import Any, Generic, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from evexia.core.exceptions import NotFoundError
from evexia.models.base import BaseModel, parse_uuid
from evexia.utils.logging import get_logger

T = TypeVar("T", bound=BaseModel)

logger = get_logger(__name__)


class BaseService(Generic[T]):
    """Base service class with patient-ownership aware lookups."""

    model_class: Type[T]
    resource_name: str = "Resource"

    def __init__(self, session: Session):
        """Initialize service with database session."""
        self.session = session

    def get_by_id(self, entity_id: Any) -> Optional[T]:
        """Get a row by ID; malformed ids resolve to None."""
        return self.model_class.get_by_id(self.session, entity_id)

    def get_owned(self, patient_id: UUID, entity_id: Any) -> T:
        """Get a row owned by ``patient_id``.

        A row owned by someone else is reported exactly like a missing one.
        """
        entity = self.get_by_id(entity_id)
        if entity is None or getattr(entity, "patient_id", None) != parse_uuid(patient_id):
            logger.info(
                "owned_lookup_miss",
                resource=self.model_class.__name__,
                found=entity is not None,
            )
            raise NotFoundError(self.resource_name)
        return entity
