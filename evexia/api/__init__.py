"""HTTP API for Evexia."""

from evexia.api import (
    auth_endpoints,
    health,
    organization_endpoints,
    patient_endpoints,
    provider_endpoints,
)

__all__ = [
    "auth_endpoints",
    "health",
    "organization_endpoints",
    "patient_endpoints",
    "provider_endpoints",
]
