"""Helpers for the single linear UTC timeline the planner works on."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Normalise to an aware UTC instant; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an absolute timestamp, returning None for anything unusable."""
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return ensure_utc(parsed)


def at_hour(value: datetime, hour: int) -> datetime:
    """Same calendar day as ``value`` at ``hour``:00:00."""
    return value.replace(hour=hour, minute=0, second=0, microsecond=0)


def tomorrow_at(now: datetime, hour: int) -> datetime:
    return at_hour(ensure_utc(now) + timedelta(days=1), hour)


def weekday_index(value: datetime) -> int:
    """Day of week with Sunday=0 ... Saturday=6."""
    return (value.weekday() + 1) % 7
