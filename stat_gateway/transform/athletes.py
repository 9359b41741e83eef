"""Athlete profile and season-average parsing.

Two provider endpoints feed player pages:

- ``/athletes/{id}``: bio, team, headshot, college, draft
- ``/athletes/{id}/stats``: an ``averages`` category with one entry per
  season-team (plus TOTAL rows for traded players) and a career entry
"""

from __future__ import annotations

import re
from typing import Any

from ..logging import logger
from ..models import AthleteSeasonAverages, PlayerBio, SeasonRow
from ..utils.date_utils import season_label
from ..utils.parsing import parse_float, parse_int, round1

_SEASON_YEAR_RE = re.compile(r"^(\d{4})")


def draft_summary(year: int | None, round_: int | None = None, pick: int | None = None) -> str | None:
    """Render "2020 · Round 1 · Pick 21"; None when undrafted or unknown."""
    if not year:
        return None
    if round_ and pick:
        return f"{year} · Round {round_} · Pick {pick}"
    if round_:
        return f"{year} · Round {round_}"
    return str(year)


def parse_athlete_profile(payload: dict[str, Any]) -> PlayerBio | None:
    athlete = payload.get("athlete")
    if not athlete or not athlete.get("id"):
        logger.warning("athlete_profile_missing", keys=sorted(payload.keys())[:10])
        return None

    team = athlete.get("team") or {}
    position = athlete.get("position") or {}
    draft = athlete.get("draft") or {}
    draft_year = parse_int(draft.get("year"))
    draft_round = parse_int(draft.get("round"))
    draft_pick = parse_int(draft.get("selection") or draft.get("pick"))

    return PlayerBio(
        external_id=str(athlete["id"]),
        display_name=athlete.get("displayName") or "",
        first_name=athlete.get("firstName"),
        last_name=athlete.get("lastName"),
        jersey=athlete.get("jersey"),
        position=position.get("abbreviation") or position.get("name"),
        team_abbreviation=team.get("abbreviation"),
        team_name=team.get("displayName") or team.get("name"),
        headshot_url=(athlete.get("headshot") or {}).get("href"),
        college=(athlete.get("college") or {}).get("name"),
        draft_year=draft_year,
        draft_round=draft_round,
        draft_pick=draft_pick,
        draft_summary=draft_summary(draft_year, draft_round, draft_pick),
    )


def _lookup(labels: list[str], stats: list[Any]):
    index = {label: idx for idx, label in enumerate(labels)}

    def stat(label: str) -> float:
        idx = index.get(label)
        if idx is None or idx >= len(stats):
            return 0.0
        value = parse_float(stats[idx])
        return value if value is not None else 0.0

    return stat


def _row_from_averages(
    stat,
    season: int | None,
    label: str,
    team_abbreviation: str | None,
) -> SeasonRow:
    games = int(stat("GP"))

    def total(label_: str) -> int:
        return int(round(stat(label_) * games))

    return SeasonRow(
        season=season,
        season_label=label,
        team_abbreviation=team_abbreviation,
        games_played=games,
        games_started=int(stat("GS")),
        ppg=round1(stat("PTS")),
        rpg=round1(stat("REB")),
        apg=round1(stat("AST")),
        spg=round1(stat("STL")),
        bpg=round1(stat("BLK")),
        mpg=round1(stat("MIN")),
        fg_pct=round1(stat("FG%")),
        fg3_pct=round1(stat("3P%")),
        ft_pct=round1(stat("FT%")),
        fgm=total("FGM"),
        fga=total("FGA"),
        fg3m=total("3PM"),
        fg3a=total("3PA"),
        ftm=total("FTM"),
        fta=total("FTA"),
        source="provider",
    )


def parse_season_averages(payload: dict[str, Any]) -> AthleteSeasonAverages:
    """Parse the ``averages`` category into season rows and an optional career row.

    Provider averages are per game; made/attempted totals are reconstructed
    as average x games played so career percentages can be weighted.
    """
    categories = payload.get("categories") or []
    averages = next((c for c in categories if c.get("name") == "averages"), None)
    if not averages:
        return AthleteSeasonAverages()

    labels = [str(label) for label in averages.get("labels") or []]
    seasons: list[SeasonRow] = []
    career: SeasonRow | None = None

    for entry in averages.get("statistics") or []:
        stats = entry.get("stats") or []
        if not stats:
            continue
        stat = _lookup(labels, stats)

        display_season = entry.get("displaySeason") or entry.get("season") or ""
        if isinstance(display_season, dict):
            display_season = display_season.get("displayName") or display_season.get("year") or ""
        if entry.get("type") == "career" or str(display_season).lower() == "career":
            career = _row_from_averages(stat, None, "Career", None)
            continue

        match = _SEASON_YEAR_RE.match(str(display_season))
        season = int(match.group(1)) if match else parse_int(display_season)
        if season is None:
            continue

        team_abbreviation = (entry.get("team") or {}).get("abbreviation") or entry.get("teamAbbreviation")
        if team_abbreviation and team_abbreviation.upper() == "TOTAL":
            team_abbreviation = None
        seasons.append(_row_from_averages(stat, season, season_label(season), team_abbreviation))

    seasons.sort(key=lambda row: row.season or 0, reverse=True)
    return AthleteSeasonAverages(seasons=seasons, career=career)
