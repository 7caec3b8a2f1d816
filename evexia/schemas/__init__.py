"""Wire-format models (camelCase JSON)."""

from evexia.schemas.base import CamelModel, SuccessResponse, to_wire

__all__ = ["CamelModel", "SuccessResponse", "to_wire"]
