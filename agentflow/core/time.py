"""Time helpers. Timestamps are stored as naive UTC."""

from datetime import UTC, datetime
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a stored timestamp as ISO-8601 with a ``Z`` suffix."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.isoformat(timespec="milliseconds") + "Z"
