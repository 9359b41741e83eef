"""
Generic, format-agnostic parsing utilities.

Provider-specific conventions (label lookups, "M-A" pairs, to-par
strings) live in transform/stat_labels.py and build on these.
"""

from __future__ import annotations


def parse_int(value: str | int | float | None) -> int | None:
    """Parse a value to an integer, handling common edge cases.

    Accepts strings, ints, floats, or None. Returns None for empty strings or "-".
    """
    if value in (None, "", "-"):
        return None
    try:
        return int(float(value))
    except (ValueError, TypeError, OverflowError):
        return None


def parse_float(value: str | int | float | None) -> float | None:
    """Parse a value to a float, handling common edge cases."""
    if value in (None, "", "-"):
        return None
    try:
        # Handle time format like "32:45" (minutes:seconds)
        if ":" in str(value):
            parts = str(value).split(":")
            if len(parts) == 2:
                return float(parts[0]) + float(parts[1]) / 60
        return float(value)
    except (ValueError, TypeError):
        return None


def round1(value: float | None) -> float:
    """Round to one decimal place; None and NaN become 0.0."""
    if value is None or value != value:
        return 0.0
    return round(value, 1)
