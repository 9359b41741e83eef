"""TTL policy for cached scoreboards and box scores.

Live data turns over quickly; finals and past dates are effectively
immutable, so they are held much longer to save provider quota.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from ..config import CacheConfig, settings
from ..models import CanonicalGame


def scoreboard_ttl(
    games: Sequence[CanonicalGame],
    day: date,
    today: date,
    config: CacheConfig | None = None,
) -> int:
    """Seconds to cache a scoreboard for ``day`` as seen on ``today``."""
    cfg = config or settings.cache_config
    if day < today:
        return cfg.historical_ttl_seconds
    if any(game.status == "live" for game in games):
        return cfg.live_scoreboard_ttl_seconds
    if day == today and games and all(game.status == "final" for game in games):
        return cfg.final_same_day_ttl_seconds
    return cfg.scheduled_today_ttl_seconds


def box_score_ttl(
    status: str,
    game_day: date | None = None,
    today: date | None = None,
    config: CacheConfig | None = None,
) -> int:
    """Seconds to cache a box score; today's finals can still get stat corrections."""
    cfg = config or settings.cache_config
    if status != "final":
        return cfg.live_boxscore_ttl_seconds
    if game_day is not None and today is not None and game_day >= today:
        return cfg.final_same_day_boxscore_ttl_seconds
    return cfg.final_boxscore_ttl_seconds
