"""Hockey box score parsing (NHL).

The provider splits skaters into forwards/defenses categories and goalies
into their own; label sets differ between them and across seasons, so each
stat is looked up through a list of aliases.
"""

from __future__ import annotations

from typing import Any

from ..logging import logger
from ..models import CanonicalGame, GoalieLine, HockeyBoxScore, HockeyTeamBox, HockeyTotals, SkaterLine, TeamRef
from .stat_labels import build_label_index, parse_clock_seconds, parse_count, stat_value

GOALIE_CATEGORIES = {"goalies", "goaltending"}


def parse_skater(athlete: dict[str, Any], index: dict[str, int]) -> SkaterLine:
    info = athlete.get("athlete") or {}
    stats = athlete.get("stats") or []
    goals = parse_count(stat_value(stats, index, "G"))
    assists = parse_count(stat_value(stats, index, "A"))
    return SkaterLine(
        id=str(info.get("id") or ""),
        name=info.get("shortName") or info.get("displayName") or "Unknown",
        jersey=info.get("jersey"),
        position=(info.get("position") or {}).get("abbreviation"),
        goals=goals,
        assists=assists,
        points=goals + assists,
        plus_minus=parse_count(stat_value(stats, index, "+/-")),
        pim=parse_count(stat_value(stats, index, "PIM")),
        shots=parse_count(stat_value(stats, index, "SOG", "S")),
        hits=parse_count(stat_value(stats, index, "HIT", "HITS")),
        blocks=parse_count(stat_value(stats, index, "BLK", "BS")),
        faceoff_wins=parse_count(stat_value(stats, index, "FW")),
        faceoff_losses=parse_count(stat_value(stats, index, "FL")),
        toi_seconds=parse_clock_seconds(stat_value(stats, index, "TOI")),
        ppg=parse_count(stat_value(stats, index, "PPG")),
        shg=parse_count(stat_value(stats, index, "SHG")),
        ppa=parse_count(stat_value(stats, index, "PPA")),
        sha=parse_count(stat_value(stats, index, "SHA")),
        shifts=parse_count(stat_value(stats, index, "SHFT", "SH")),
    )


def parse_goalie(athlete: dict[str, Any], index: dict[str, int]) -> GoalieLine:
    info = athlete.get("athlete") or {}
    stats = athlete.get("stats") or []
    saves = parse_count(stat_value(stats, index, "SV", "SAVES"))
    shots_against = parse_count(stat_value(stats, index, "SA"))
    return GoalieLine(
        id=str(info.get("id") or ""),
        name=info.get("shortName") or info.get("displayName") or "Unknown",
        jersey=info.get("jersey"),
        saves=saves,
        shots_against=shots_against,
        goals_against=parse_count(stat_value(stats, index, "GA")),
        save_pct=round(saves / shots_against * 100, 1) if shots_against else 0.0,
        toi_seconds=parse_clock_seconds(stat_value(stats, index, "TOI")),
        even_saves=parse_count(stat_value(stats, index, "EVSV")),
        pp_saves=parse_count(stat_value(stats, index, "PPSV")),
        sh_saves=parse_count(stat_value(stats, index, "SHSV")),
        even_shots_against=parse_count(stat_value(stats, index, "EVSA")),
        pp_shots_against=parse_count(stat_value(stats, index, "PPSA")),
        sh_shots_against=parse_count(stat_value(stats, index, "SHSA")),
        decision=stat_value(stats, index, "DEC", "DECISION"),
    )


def compute_team_totals(skaters: list[SkaterLine]) -> HockeyTotals:
    totals = HockeyTotals()
    for skater in skaters:
        totals.goals += skater.goals
        totals.assists += skater.assists
        totals.points += skater.points
        totals.shots += skater.shots
        totals.hits += skater.hits
        totals.blocks += skater.blocks
        totals.pim += skater.pim
        totals.faceoff_wins += skater.faceoff_wins
        totals.faceoff_losses += skater.faceoff_losses
        totals.ppg += skater.ppg
        totals.shg += skater.shg
    return totals


def parse_team_box(team: TeamRef, is_home: bool, player_block: dict[str, Any] | None) -> HockeyTeamBox:
    skaters: list[SkaterLine] = []
    goalies: list[GoalieLine] = []

    for category in (player_block or {}).get("statistics") or []:
        category_name = (category.get("name") or "").lower()
        index = build_label_index(category.get("labels"))
        for athlete in category.get("athletes") or []:
            if athlete.get("didNotPlay"):
                continue
            position = ((athlete.get("athlete") or {}).get("position") or {}).get("abbreviation")
            if position == "G" or category_name in GOALIE_CATEGORIES:
                goalies.append(parse_goalie(athlete, index))
            else:
                skaters.append(parse_skater(athlete, index))

    logger.debug(
        "hockey_team_box_parsed",
        team=team.abbreviation,
        skaters=len(skaters),
        goalies=len(goalies),
    )
    return HockeyTeamBox(
        team=team,
        is_home=is_home,
        skaters=skaters,
        goalies=goalies,
        totals=compute_team_totals(skaters),
    )


def parse_hockey_box_score(
    game: CanonicalGame,
    home_block: dict[str, Any] | None,
    away_block: dict[str, Any] | None,
) -> HockeyBoxScore:
    return HockeyBoxScore(
        game_id=game.id,
        league=game.league,
        home=parse_team_box(game.home_team, True, home_block),
        away=parse_team_box(game.away_team, False, away_block),
    )
