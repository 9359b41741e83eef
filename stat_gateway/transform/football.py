"""Football box score parsing (NFL, NCAAF).

Football categories (passing, rushing, receiving, ...) each have their own
label set, so rows are kept as label -> display value tables instead of
typed stat lines.
"""

from __future__ import annotations

from typing import Any

from ..models import CanonicalGame, FootballBoxScore, FootballGroup, FootballRow, FootballTeamBox, TeamRef


def parse_group(category: dict[str, Any]) -> FootballGroup:
    labels = [str(label) for label in category.get("labels") or []]
    rows: list[FootballRow] = []
    for athlete in category.get("athletes") or []:
        info = athlete.get("athlete") or {}
        values = athlete.get("stats") or []
        stats = {
            label: (values[idx] if idx < len(values) and values[idx] not in (None, "") else "-")
            for idx, label in enumerate(labels)
        }
        rows.append(
            FootballRow(
                id=str(info.get("id") or ""),
                name=info.get("displayName") or "Unknown",
                position=(info.get("position") or {}).get("abbreviation"),
                stats=stats,
            )
        )
    return FootballGroup(
        name=category.get("name") or "unknown",
        label=category.get("text") or category.get("displayName"),
        headers=labels,
        rows=rows,
    )


def parse_team_box(team: TeamRef, is_home: bool, player_block: dict[str, Any] | None) -> FootballTeamBox:
    categories = (player_block or {}).get("statistics") or []
    return FootballTeamBox(
        team=team,
        is_home=is_home,
        groups=[parse_group(category) for category in categories],
    )


def parse_football_box_score(
    game: CanonicalGame,
    home_block: dict[str, Any] | None,
    away_block: dict[str, Any] | None,
) -> FootballBoxScore:
    return FootballBoxScore(
        game_id=game.id,
        league=game.league,
        home=parse_team_box(game.home_team, True, home_block),
        away=parse_team_box(game.away_team, False, away_block),
    )
