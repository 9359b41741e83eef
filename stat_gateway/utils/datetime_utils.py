"""
Low-level timezone and timestamp utilities.

Domain-agnostic helpers for timezone-aware UTC datetimes. Season
boundaries and other sports calendar logic belong in date_utils.py.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def now_utc() -> datetime:
    """Return the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def today_utc() -> date:
    """Return the current date in UTC timezone."""
    return now_utc().date()


def today_et() -> date:
    """Return the current date in US Eastern Time (sports calendar day).

    A 10 PM ET game on Feb 5 is a "Feb 5 game" even though it's Feb 6 in
    UTC. Use this instead of today_utc() for scoreboard dates.
    """
    return datetime.now(ZoneInfo("America/New_York")).date()


def parse_iso_datetime(value: str | None) -> datetime | None:
    """Parse a provider ISO timestamp ("2025-01-15T00:30Z") into UTC."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_et_date(value: datetime | None) -> date:
    """Calendar day of a timestamp in US Eastern Time; today (ET) when missing."""
    if value is None:
        return today_et()
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo("America/New_York")).date()
