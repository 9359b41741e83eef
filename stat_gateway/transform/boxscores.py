"""Dispatch a raw summary payload to the matching per-sport parser."""

from __future__ import annotations

from typing import Any

from ..config_sports import get_league_config
from ..models import BoxScoreResult
from .basketball import parse_basketball_box_score
from .football import parse_football_box_score
from .games import transform_summary_game
from .golf import parse_golf_box_score
from .hockey import parse_hockey_box_score


def _player_block(payload: dict[str, Any], team_id: str) -> dict[str, Any] | None:
    for block in (payload.get("boxscore") or {}).get("players") or []:
        if str((block.get("team") or {}).get("id")) == team_id:
            return block
    return None


def transform_box_score(league_code: str, payload: dict[str, Any]) -> BoxScoreResult:
    """Transform a summary (team sports) or leaderboard (golf) payload.

    Raises:
        ProviderStructuralError: if the summary header is missing required parts
        ValueError: if the league is unknown
    """
    league = get_league_config(league_code)
    if league.sport == "golf":
        return BoxScoreResult(game=None, box_score=parse_golf_box_score(league.code, payload))

    game = transform_summary_game(league.code, payload)
    home_block = _player_block(payload, game.home_team.provider_id)
    away_block = _player_block(payload, game.away_team.provider_id)

    match league.sport:
        case "basketball":
            box_score = parse_basketball_box_score(game, home_block, away_block)
        case "football":
            box_score = parse_football_box_score(game, home_block, away_block)
        case "hockey":
            box_score = parse_hockey_box_score(game, home_block, away_block)
        case _:
            raise ValueError(f"No box score parser for sport '{league.sport}'")

    return BoxScoreResult(game=game, box_score=box_score)
