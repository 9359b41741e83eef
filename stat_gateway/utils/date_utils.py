"""
Domain-level date and season calculation utilities.

Season boundaries are driven by each league's ``season_start_month``
in config_sports.py. Time-of-day and timezone logic belongs in
datetime_utils.py.
"""

from __future__ import annotations

from datetime import date

from ..config_sports import get_league_config


def season_from_date(day: date, league_code: str) -> int:
    """Calculate season year from a date based on league.

    Leagues whose season spans two calendar years (NBA, NHL, NFL, college)
    label the season by its starting year: a January 2026 NBA game is in
    the 2025 season. Golf seasons follow the calendar year.
    """
    start_month = get_league_config(league_code).season_start_month
    if start_month <= 1:
        return day.year
    return day.year if day.month >= start_month else day.year - 1


def current_season(today: date, league_code: str = "NBA") -> int:
    """Season currently in progress (or most recently started) on ``today``."""
    return season_from_date(today, league_code)


def season_label(season: int) -> str:
    """Format a season start year for display: 2025 -> "2025-26"."""
    return f"{season}-{(season + 1) % 100:02d}"
