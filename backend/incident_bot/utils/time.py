"""Time helpers shared by the lifecycle and rendering code."""

import math
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def duration_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, rounded half up, never negative."""
    seconds = (ensure_utc(end) - ensure_utc(start)).total_seconds()
    return max(0, int(math.floor(seconds / 60.0 + 0.5)))


def format_duration(minutes: Optional[int]) -> str:
    """Render minutes as ``Xh Ymin`` or ``Ymin``."""
    if minutes is None:
        return "unknown"
    hours, remainder = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h {remainder}min"
    return f"{remainder}min"


def format_timestamp(value: datetime) -> str:
    return ensure_utc(value).strftime("%Y-%m-%d %H:%M UTC")
