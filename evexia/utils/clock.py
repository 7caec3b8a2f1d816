"""Time helpers.

Timestamps are stored as naive UTC so comparisons behave the same on
PostgreSQL and SQLite.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return the current time as naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
