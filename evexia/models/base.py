"""Base model classes for database models."""

import uuid
from datetime import datetime
from typing import Any, Optional, Type, TypeVar

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import Mapped, Session, declarative_base, mapped_column

from evexia.utils.clock import utcnow

from .db_types import UUID

Base: Any = declarative_base()

ModelT = TypeVar("ModelT", bound="BaseModel")


class TimestampMixin:
    """Mixin for a creation timestamp."""

    created_at = Column(DateTime, nullable=False, default=utcnow)


class UpdatedAtMixin:
    """Mixin for models that are edited after creation."""

    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class BaseModel(Base, TimestampMixin):
    """Base model class with common fields."""

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(), primary_key=True, default=uuid.uuid4, nullable=False
    )

    def __init__(self, **kwargs: Any) -> None:
        """Initialize base model."""
        super().__init__(**kwargs)
        if not self.id:
            self.id = uuid.uuid4()

    @classmethod
    def get_by_id(
        cls: Type[ModelT], session: Session, record_id: Any
    ) -> Optional[ModelT]:
        """Get instance by ID, treating malformed ids as missing."""
        try:
            key = record_id if isinstance(record_id, uuid.UUID) else uuid.UUID(str(record_id))
        except (TypeError, ValueError):
            return None
        return session.get(cls, key)

    def save(self, session: Session) -> None:
        """Add the instance and flush so defaults are populated."""
        session.add(self)
        session.flush()

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<{self.__class__.__name__}(id={self.id})>"


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    """Parse a UUID from user input, returning None when malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


__all__ = ["Base", "BaseModel", "TimestampMixin", "UpdatedAtMixin", "datetime", "parse_uuid"]
