"""Record categories and scope filtering.

A scope is a subset of the four record categories. Callers may pass scopes
with repeats or in any order; every helper here treats them as sets.
"""

import enum
from typing import Any, Iterable, List, Optional, Sequence, TypeVar

from evexia.core.exceptions import ValidationError

T = TypeVar("T")

SCOPE_WARNING = "This summary may reference data outside your authorized scope."


class RecordCategory(str, enum.Enum):
    """Category tag carried by every record and anomaly."""

    VITALS = "vitals"
    LABS = "labs"
    MEDS = "meds"
    ENCOUNTERS = "encounters"


FULL_SCOPE: List[str] = [category.value for category in RecordCategory]


def parse_scope(values: Any, field: str = "scope", allow_empty: bool = True) -> List[str]:
    """Validate a client-supplied scope.

    Unknown categories raise :class:`ValidationError`. Duplicates collapse,
    first occurrence wins.
    """
    if values is None:
        values = []
    if isinstance(values, str) or not isinstance(values, (list, tuple)):
        raise ValidationError(f"{field} must be a list of categories", field=field)

    scope: List[str] = []
    for value in values:
        category = value.value if isinstance(value, RecordCategory) else value
        if category not in FULL_SCOPE:
            raise ValidationError(f"Invalid category: {category}", field=field)
        if category not in scope:
            scope.append(category)

    if not scope and not allow_empty:
        raise ValidationError(f"{field} must contain at least one category", field=field)
    return scope


def _category_of(item: Any) -> Optional[str]:
    if isinstance(item, dict):
        category = item.get("category")
    else:
        category = getattr(item, "category", None)
    if isinstance(category, RecordCategory):
        return category.value
    return category


def filter_by_scope(items: Optional[Iterable[T]], scope: Iterable[str]) -> List[T]:
    """Keep items whose category is in scope, preserving their order."""
    if not items:
        return []
    allowed = set(scope)
    return [item for item in items if _category_of(item) in allowed]


def has_full_access(scope: Iterable[str]) -> bool:
    """True iff every category is present in scope."""
    return set(FULL_SCOPE).issubset(set(scope))


def scope_warning(scope: Sequence[str]) -> Optional[str]:
    """Advisory text for partial access, None for full access."""
    return None if has_full_access(scope) else SCOPE_WARNING
