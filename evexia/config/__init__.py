"""Configuration module for Evexia."""

from evexia.config.base import AuthMode, Settings
from evexia.config.loader import get_settings

__all__ = ["AuthMode", "Settings", "get_settings"]
