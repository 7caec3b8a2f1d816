"""Database type compatibility layer for PostgreSQL and SQLite.

Types pick their implementation from the dialect at bind time, so the same
models run against PostgreSQL in production and SQLite in tests.
"""

import uuid
from typing import Any, List, Optional, Type

from sqlalchemy import CHAR, JSON, Text, TypeDecorator
from sqlalchemy.dialects.postgresql import ARRAY as PostgreSQLARRAY
from sqlalchemy.dialects.postgresql import JSONB as PostgreSQLJSONB
from sqlalchemy.dialects.postgresql import UUID as PostgreSQLUUID

JSONB = JSON().with_variant(PostgreSQLJSONB(), "postgresql")


class UUID(TypeDecorator):
    """UUID type that degrades to CHAR(36) outside PostgreSQL."""

    impl = CHAR(36)
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        """Use the native UUID type on PostgreSQL."""
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PostgreSQLUUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value: Any, dialect: Any) -> Any:
        """Process value before binding to database."""
        if value is None:
            return None
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        if dialect.name == "postgresql":
            return value
        return str(value)

    def process_result_value(self, value: Any, dialect: Any) -> Optional[uuid.UUID]:
        """Process value when loading from database."""
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))

    @property
    def python_type(self) -> Type[uuid.UUID]:
        """Python type."""
        return uuid.UUID


class StringArray(TypeDecorator):
    """TEXT[] on PostgreSQL, a JSON list elsewhere."""

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect: Any) -> Any:
        """Use a native array on PostgreSQL."""
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PostgreSQLARRAY(Text))
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value: Any, dialect: Any) -> Optional[List[str]]:
        """Process value before binding to database."""
        if value is None:
            return None
        return [str(item) for item in value]

    def process_result_value(self, value: Any, dialect: Any) -> List[str]:
        """Process value when loading from database."""
        return list(value) if value is not None else []

    @property
    def python_type(self) -> Type[list]:
        """Python type."""
        return list
