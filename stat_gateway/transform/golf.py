"""Golf tournament parsing (PGA, LPGA, Korn Ferry)."""

from __future__ import annotations

from datetime import date
from typing import Any

from ..config_sports import get_league_config
from ..models import GameStatus, GolfBoxScore, GolferLine, Tournament
from ..models.schemas import RoundStatus
from ..utils.datetime_utils import today_utc
from ..utils.parsing import parse_int
from .games import map_game_status
from .stat_labels import parse_to_par

MISSING_POSITION = 999


def map_round_status(name: str | None) -> RoundStatus:
    status = (name or "").upper()
    if "PROGRESS" in status:
        return "In Progress"
    if "FINAL" in status or "COMPLETE" in status:
        return "Complete"
    if "SCHEDULED" in status or "PRE" in status:
        return "Scheduled"
    if "DELAYED" in status:
        return "Delayed"
    if "SUSPENDED" in status:
        return "Suspended"
    return "Scheduled"


def _display(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("displayValue")
    return str(value) if value not in (None, "") else None


def parse_golfer(competitor: dict[str, Any]) -> GolferLine:
    athlete = competitor.get("athlete") or {}
    status = competitor.get("status") or {}

    score_display = _display(competitor.get("score")) or "E"
    position_block = status.get("position") or {}
    position = parse_int(position_block.get("id"))
    if position is None:
        position = parse_int(competitor.get("sortOrder"))

    rounds = [
        parse_int(linescore.get("value") if linescore.get("value") is not None else linescore.get("displayValue"))
        for linescore in competitor.get("linescores") or []
    ]

    return GolferLine(
        id=str(athlete.get("id") or competitor.get("id") or ""),
        name=athlete.get("displayName") or athlete.get("shortName") or "Unknown",
        country=(athlete.get("flag") or {}).get("alt"),
        position=position,
        position_display=position_block.get("displayName"),
        score_display=score_display,
        to_par_total=parse_to_par(score_display),
        thru=_display(status.get("thru")),
        today=_display(status.get("today")),
        rounds=rounds,
    )


def parse_leaderboard(competitors: list[dict[str, Any]]) -> list[GolferLine]:
    lines = [parse_golfer(competitor) for competitor in competitors]
    return sorted(lines, key=lambda line: line.position if line.position is not None else MISSING_POSITION)


def _date_part(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.split("T")[0])
    except ValueError:
        return None


def transform_tournament(league_code: str, payload: dict[str, Any]) -> Tournament:
    """Build a Tournament from a leaderboard or scoreboard event payload."""
    league = get_league_config(league_code)
    events = payload.get("events") or []
    event = events[0] if events else payload
    competitions = event.get("competitions") or []
    competition = competitions[0] if competitions else {}
    status_block = event.get("status") or competition.get("status") or {}
    status_name = (status_block.get("type") or {}).get("name")

    leaderboard = parse_leaderboard(payload.get("competitors") or competition.get("competitors") or [])
    round_status = map_round_status(status_name)
    winner = leaderboard[0].name if round_status == "Complete" and leaderboard else None

    event_id = str(event.get("id") or "")
    venue = competition.get("venue") or {}
    return Tournament(
        id=f"{league.id_prefix}_{event_id}",
        provider_event_id=event_id,
        league=league.code,
        name=event.get("name") or event.get("shortName") or "Unknown Tournament",
        start_date=_date_part(event.get("date")),
        end_date=_date_part(event.get("endDate")),
        venue=venue.get("fullName"),
        status=map_game_status(status_name),
        current_round=parse_int(status_block.get("period")) or 1,
        round_status=round_status,
        winner=winner,
        leaderboard=leaderboard,
    )


def _calendar_status(start: date | None, end: date | None, today: date) -> tuple[GameStatus, RoundStatus]:
    if end is not None and today > end:
        return "final", "Complete"
    if start is not None and start <= today and (end is None or today <= end):
        return "live", "In Progress"
    return "scheduled", "Scheduled"


def transform_calendar(league_code: str, payload: dict[str, Any], today: date | None = None) -> list[Tournament]:
    """Season schedule from ``scoreboard?calendar=true``; no leaderboards.

    Status is inferred from the event dates relative to ``today``.
    """
    today = today or today_utc()
    league = get_league_config(league_code)
    leagues = payload.get("leagues") or []
    calendar = leagues[0].get("calendar") if leagues else []
    tournaments: list[Tournament] = []
    for entry in calendar or []:
        if not isinstance(entry, dict) or not entry.get("id"):
            continue
        event_id = str(entry["id"])
        start_date = _date_part(entry.get("startDate"))
        end_date = _date_part(entry.get("endDate"))
        status, round_status = _calendar_status(start_date, end_date, today)
        tournaments.append(
            Tournament(
                id=f"{league.id_prefix}_{event_id}",
                provider_event_id=event_id,
                league=league.code,
                name=entry.get("label") or "Unknown Tournament",
                start_date=start_date,
                end_date=end_date,
                status=status,
                round_status=round_status,
            )
        )
    return tournaments


def parse_golf_box_score(league_code: str, payload: dict[str, Any]) -> GolfBoxScore:
    tournament = transform_tournament(league_code, payload)
    return GolfBoxScore(game_id=tournament.id, league=tournament.league, tournament=tournament)
