"""Game-level transforms: scoreboard events and summary headers."""

from __future__ import annotations

from typing import Any

from ..config_sports import LeagueConfig, get_league_config
from ..errors import ProviderStructuralError
from ..logging import logger
from ..models import CanonicalGame, GameStatus, TeamRef, Venue
from ..utils.datetime_utils import parse_iso_datetime
from ..utils.parsing import parse_int

# Provider conference ids -> display names (college leagues)
CONFERENCE_NAMES: dict[str, str] = {
    "1": "AAC",
    "2": "ACC",
    "3": "A-10",
    "4": "Big East",
    "5": "Big Sky",
    "6": "Big South",
    "7": "Big Ten",
    "8": "Big 12",
    "9": "C-USA",
    "10": "Ivy",
    "11": "MAAC",
    "12": "MAC",
    "13": "MEAC",
    "14": "MWC",
    "15": "NEC",
    "16": "OVC",
    "17": "Pac-12",
    "18": "Patriot",
    "19": "SEC",
    "20": "SoCon",
    "21": "Southland",
    "22": "SWAC",
    "23": "SEC",
    "24": "Summit",
    "25": "Sun Belt",
    "26": "WAC",
    "27": "WCC",
    "29": "ASUN",
    "30": "Horizon",
    "31": "MVC",
    "32": "CAA",
    "33": "America East",
    "34": "Big West",
    "35": "Independent",
    "37": "C-USA",
    "40": "Independent",
    "46": "AAC",
    "50": "Big 12",
    "62": "AAC",
    "80": "Independent",
    "81": "Sun Belt",
    "151": "AAC",
}


def map_game_status(name: str | None) -> GameStatus:
    """Map a provider status name ("STATUS_FINAL", "STATUS_HALFTIME") to canonical status."""
    status = (name or "").upper()
    if "SCHEDULED" in status or "PRE" in status:
        return "scheduled"
    if "FINAL" in status or "END" in status or "POST" in status:
        return "final"
    if "PROGRESS" in status or "HALFTIME" in status or "IN_" in status:
        return "live"
    return "scheduled"


def _football_period_label(period: int) -> str:
    labels = {1: "1st", 2: "2nd", 3: "3rd", 4: "4th", 5: "OT"}
    return labels.get(period, f"OT{period - 4}")


def period_label(league: LeagueConfig, period: int) -> str:
    if league.sport == "football":
        return _football_period_label(period)
    if league.sport == "hockey":
        return f"P{period}"
    return f"Q{period}"


def overtime_periods(league: LeagueConfig, period: int) -> int:
    return max(0, period - league.regular_periods)


def build_team_ref(league: LeagueConfig, competitor: dict[str, Any], status: GameStatus) -> TeamRef:
    team = competitor.get("team") or {}
    team_id = str(team.get("id") or competitor.get("id") or "")

    conference = None
    conference_id = team.get("conferenceId")
    if league.is_college and conference_id:
        conference = CONFERENCE_NAMES.get(str(conference_id), f"Conference {conference_id}")

    # Scheduled games carry "0" scores upstream; never surface them
    score = None
    if status != "scheduled":
        score = parse_int(competitor.get("score"))
        if score is None:
            score = 0

    record = None
    records = competitor.get("records") or competitor.get("record") or []
    if isinstance(records, list) and records:
        record = records[0].get("summary") or records[0].get("displayValue")

    return TeamRef(
        id=f"{league.id_prefix}_{team_id}",
        provider_id=team_id,
        abbreviation=team.get("abbreviation") or "",
        name=team.get("shortDisplayName") or team.get("displayName") or team.get("name") or "",
        short_name=team.get("shortDisplayName"),
        logo=team.get("logo"),
        record=record,
        conference=conference,
        score=score,
    )


def build_venue(raw: dict[str, Any] | None) -> Venue | None:
    if not raw or not raw.get("id"):
        return None
    address = raw.get("address") or {}
    return Venue(
        id=f"venue_{raw['id']}",
        name=raw.get("fullName") or raw.get("name") or "",
        city=address.get("city"),
        state=address.get("state"),
    )


def _split_competitors(competitors: list[dict[str, Any]]) -> tuple[dict | None, dict | None]:
    home = next((c for c in competitors if c.get("homeAway") == "home"), None)
    away = next((c for c in competitors if c.get("homeAway") == "away"), None)
    return home, away


def _build_game(
    league: LeagueConfig,
    event_id: str,
    competition: dict[str, Any],
    status_block: dict[str, Any],
    home: dict[str, Any],
    away: dict[str, Any],
    start_time: str | None,
    venue_raw: dict[str, Any] | None,
) -> CanonicalGame:
    status = map_game_status((status_block.get("type") or {}).get("name"))
    period = parse_int(status_block.get("period")) or 0
    clock = status_block.get("displayClock")

    broadcast = None
    broadcasts = competition.get("broadcasts") or []
    if broadcasts:
        names = broadcasts[0].get("names") or []
        broadcast = names[0] if names else None

    return CanonicalGame(
        id=f"{league.id_prefix}_{event_id}",
        provider_event_id=event_id,
        league=league.code,
        start_time=parse_iso_datetime(start_time),
        status=status,
        period=period_label(league, period) if status != "scheduled" and period > 0 else None,
        clock=clock if status != "scheduled" and clock else None,
        overtime_periods=overtime_periods(league, period),
        venue=build_venue(venue_raw),
        broadcast=broadcast,
        home_team=build_team_ref(league, home, status),
        away_team=build_team_ref(league, away, status),
    )


def transform_event(league_code: str, event: dict[str, Any]) -> CanonicalGame | None:
    """Transform one scoreboard event. Events missing competitors are skipped."""
    league = get_league_config(league_code)
    competitions = event.get("competitions") or []
    if not competitions:
        logger.warning("scoreboard_event_missing_competition", league=league.code, event_id=event.get("id"))
        return None
    competition = competitions[0]
    home, away = _split_competitors(competition.get("competitors") or [])
    if home is None or away is None:
        logger.warning("scoreboard_event_missing_competitors", league=league.code, event_id=event.get("id"))
        return None

    return _build_game(
        league,
        str(event.get("id")),
        competition,
        event.get("status") or competition.get("status") or {},
        home,
        away,
        event.get("date") or competition.get("date"),
        competition.get("venue"),
    )


def transform_scoreboard(league_code: str, payload: dict[str, Any]) -> list[CanonicalGame]:
    games: list[CanonicalGame] = []
    for event in payload.get("events") or []:
        game = transform_event(league_code, event)
        if game is not None:
            games.append(game)
    return games


def summary_competitors(payload: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any], dict[str, Any]]:
    """Return (competition, home, away) from a summary header.

    Raises:
        ProviderStructuralError: if the header competition, its competitors
            or either side is missing
    """
    header = payload.get("header") or {}
    competitions = header.get("competitions") or []
    competition = competitions[0] if competitions else None
    if not competition or not competition.get("competitors"):
        raise ProviderStructuralError("Invalid summary response: missing competition or competitors")
    home, away = _split_competitors(competition["competitors"])
    if home is None or away is None:
        raise ProviderStructuralError("Invalid summary response: missing home or away competitor")
    return competition, home, away


def transform_summary_game(league_code: str, payload: dict[str, Any]) -> CanonicalGame:
    league = get_league_config(league_code)
    competition, home, away = summary_competitors(payload)
    header = payload.get("header") or {}
    event_id = str(header.get("id") or competition.get("id") or "")
    venue = (payload.get("gameInfo") or {}).get("venue") or competition.get("venue")
    return _build_game(
        league,
        event_id,
        competition,
        competition.get("status") or {},
        home,
        away,
        competition.get("date"),
        venue,
    )
