"""Base models for the JSON wire format.

Python attributes stay snake_case; the wire format is camelCase. All
request and response models inherit from :class:`CamelModel` so the mapping
happens in one place.
"""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model for all API models with common configuration."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


class SuccessResponse(CamelModel):
    """Envelope for successful responses."""

    success: bool = True


def to_wire(model: BaseModel) -> Dict[str, Any]:
    """Serialize a model with camelCase keys and JSON-safe values."""
    return model.model_dump(mode="json", by_alias=True)
