"""Access control: scopes, record payloads and the authorization engine."""

from evexia.access.scope import (
    FULL_SCOPE,
    SCOPE_WARNING,
    RecordCategory,
    filter_by_scope,
    has_full_access,
    parse_scope,
    scope_warning,
)

__all__ = [
    "FULL_SCOPE",
    "SCOPE_WARNING",
    "RecordCategory",
    "filter_by_scope",
    "has_full_access",
    "parse_scope",
    "scope_warning",
]
