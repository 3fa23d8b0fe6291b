"""
Common utility functions for the CartPod backend.
"""

import datetime
from typing import Optional


def utcnow() -> datetime.datetime:
    """
    Current UTC time as a naive datetime.

    Timestamps are stored naive-in-UTC so SQLite and PostgreSQL round-trip
    them identically.
    """
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def isoformat(value: Optional[datetime.datetime]) -> Optional[str]:
    """Serialize a stored (naive UTC) datetime with an explicit ``Z`` suffix."""
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds") + "Z"
