"""Helpers for the provider's label-indexed stat arrays.

Box score athletes carry ``stats: ["32:30", "24", "9-17", ...]`` aligned
with a category's ``labels``. Values are strings and use "-" or "" as
placeholders, so every helper here tolerates junk and never raises.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..utils.parsing import parse_float, parse_int

PLACEHOLDERS = {"", "-", "--"}


def build_label_index(labels: Sequence[str] | None) -> dict[str, int]:
    """Map upper-cased label -> column index."""
    return {str(label).upper(): idx for idx, label in enumerate(labels or [])}


def stat_value(stats: Sequence[str] | None, index: dict[str, int], *labels: str) -> str | None:
    """Return the raw value for the first label present in ``index``.

    Aliases are tried in order, so ``stat_value(stats, idx, "SOG", "S")``
    prefers SOG. A present but placeholder value falls through to the next
    alias.
    """
    if not stats:
        return None
    for label in labels:
        idx = index.get(label.upper())
        if idx is None or idx >= len(stats):
            continue
        value = stats[idx]
        if value is None or str(value).strip() in PLACEHOLDERS:
            continue
        return str(value).strip()
    return None


def parse_count(value: str | int | None) -> int:
    """Parse a counting stat; placeholders and junk become 0."""
    if isinstance(value, str):
        value = value.strip()
        if value.startswith("+"):
            value = value[1:]
    parsed = parse_int(value)
    return parsed if parsed is not None else 0


def parse_made_attempted(value: str | None) -> tuple[int, int]:
    """Parse "12-20" into (12, 20). Malformed input yields (0, 0)."""
    if not value or not isinstance(value, str):
        return 0, 0
    made, sep, attempted = value.strip().partition("-")
    if not sep or not made.strip().isdigit() or not attempted.strip().isdigit():
        return 0, 0
    return int(made), int(attempted)


def shooting_pct(made: int, attempted: int) -> float:
    """Percentage on a 0-100 scale, one decimal. 0.0 when nothing was attempted."""
    if attempted <= 0:
        return 0.0
    return round(made / attempted * 100, 1)


def parse_clock_seconds(value: str | None) -> int:
    """Convert "mm:ss" (time on ice) to whole seconds. Bare numbers are seconds."""
    if not value or str(value).strip() in PLACEHOLDERS:
        return 0
    text = str(value).strip()
    if ":" in text:
        minutes, _, seconds = text.partition(":")
        return parse_count(minutes) * 60 + parse_count(seconds)
    return parse_count(text)


def parse_minutes(value: str | None) -> float:
    """Convert "32:30" to 32.5 decimal minutes; "32" stays 32.0."""
    parsed = parse_float(value.strip() if isinstance(value, str) else value)
    if parsed is None:
        return 0.0
    return round(parsed, 2)


def parse_to_par(score: str | None) -> int:
    """Golf score relative to par: "E" -> 0, "+3" -> 3, "-5" -> -5."""
    if not score:
        return 0
    text = str(score).strip().upper()
    if text == "E":
        return 0
    if text[:1] in ("+", "-") and text[1:].isdigit():
        return int(text)
    return 0
