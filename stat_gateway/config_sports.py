"""
Single Source of Truth (SSOT) for supported leagues.

Provider paths, period structure, season boundaries and the persistence
guard threshold all live here. Never hardcode league strings elsewhere.

To add a new league:
1. Add entry to LEAGUE_CONFIG with its sport family and provider path
2. The sport family decides which box score parser runs
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

SportFamily = Literal["basketball", "football", "hockey", "golf"]


@dataclass(frozen=True)
class LeagueConfig:
    """Configuration for a single league."""

    code: str                       # "NBA", "NHL", "PGA"
    display_name: str               # "NBA Basketball"
    sport: SportFamily
    provider_path: str              # "basketball/nba"

    # Game clock structure
    regular_periods: int = 4

    # Persistence guard: minimum populated players per team (per leaderboard for golf)
    min_populated_players: int = 5

    # Month the season starts in; games before it belong to the prior season
    season_start_month: int = 10

    is_college: bool = False
    player_extraction: bool = False  # Derive player game logs from box scores

    @property
    def id_prefix(self) -> str:
        return self.code.lower()


# Master configuration for all leagues
LEAGUE_CONFIG: dict[str, LeagueConfig] = {
    "NBA": LeagueConfig(
        code="NBA",
        display_name="NBA Basketball",
        sport="basketball",
        provider_path="basketball/nba",
        min_populated_players=5,
        player_extraction=True,
    ),
    "NCAAM": LeagueConfig(
        code="NCAAM",
        display_name="NCAA Men's Basketball",
        sport="basketball",
        provider_path="basketball/mens-college-basketball",
        min_populated_players=5,
        is_college=True,
        player_extraction=True,
    ),
    "NFL": LeagueConfig(
        code="NFL",
        display_name="NFL Football",
        sport="football",
        provider_path="football/nfl",
        min_populated_players=11,
        season_start_month=9,
    ),
    "NCAAF": LeagueConfig(
        code="NCAAF",
        display_name="NCAA Football",
        sport="football",
        provider_path="football/college-football",
        min_populated_players=11,
        season_start_month=9,
        is_college=True,
    ),
    "NHL": LeagueConfig(
        code="NHL",
        display_name="NHL Hockey",
        sport="hockey",
        provider_path="hockey/nhl",
        regular_periods=3,
        min_populated_players=6,
    ),
    "PGA": LeagueConfig(
        code="PGA",
        display_name="PGA Tour",
        sport="golf",
        provider_path="golf/pga",
        min_populated_players=1,
        season_start_month=1,
    ),
    "LPGA": LeagueConfig(
        code="LPGA",
        display_name="LPGA Tour",
        sport="golf",
        provider_path="golf/lpga",
        min_populated_players=1,
        season_start_month=1,
    ),
    "KORN_FERRY": LeagueConfig(
        code="KORN_FERRY",
        display_name="Korn Ferry Tour",
        sport="golf",
        provider_path="golf/korn-ferry",
        min_populated_players=1,
        season_start_month=1,
    ),
}


def get_league_config(league_code: str) -> LeagueConfig:
    """
    Get configuration for a specific league. Accepts "nba" or "NBA".

    Raises:
        ValueError: If league_code is not in LEAGUE_CONFIG
    """
    key = league_code.upper()
    if key not in LEAGUE_CONFIG:
        valid = ", ".join(LEAGUE_CONFIG.keys())
        raise ValueError(f"Unknown league '{league_code}'. Valid leagues: {valid}")
    return LEAGUE_CONFIG[key]


def get_enabled_leagues() -> list[str]:
    """Get list of all configured league codes."""
    return list(LEAGUE_CONFIG.keys())


def get_extraction_leagues() -> list[str]:
    """Get leagues whose box scores feed player game logs."""
    return [code for code, cfg in LEAGUE_CONFIG.items() if cfg.player_extraction]


def min_populated_players(league_code: str, overrides: dict[str, int] | None = None) -> int:
    """Resolve the persistence guard threshold, honoring per-deploy overrides."""
    cfg = get_league_config(league_code)
    if overrides and cfg.code in overrides:
        return overrides[cfg.code]
    return cfg.min_populated_players


def parse_game_id(game_id: str) -> tuple[LeagueConfig, str]:
    """Split an internal id like ``nba_401584701`` into (league, provider event id).

    The event id is everything after the last underscore so prefixes that
    themselves contain underscores (``korn_ferry_401580``) still resolve.

    Raises:
        ValueError: If the id has no league prefix or the league is unknown
    """
    prefix, sep, event_id = game_id.rpartition("_")
    if not sep or not prefix or not event_id:
        raise ValueError(f"Invalid game id '{game_id}'. Expected '<league>_<eventId>'.")
    return get_league_config(prefix), event_id
