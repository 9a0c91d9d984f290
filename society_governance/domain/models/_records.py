"""Record conversion helpers shared by the domain models.

Every persisted entity serializes to a plain dict of JSON-compatible
values keyed by its id. Timestamps are ISO 8601 strings in UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def iso(value: Optional[datetime]) -> Optional[str]:
    """Render an optional datetime as ISO 8601."""
    if value is None:
        return None
    return value.isoformat()


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an optional ISO 8601 string, assuming UTC for naive values."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def require_iso(value: str) -> datetime:
    """Parse a mandatory ISO 8601 string."""
    parsed = parse_iso(value)
    if parsed is None:
        raise ValueError("timestamp is required")
    return parsed


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, leave aware ones untouched."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
