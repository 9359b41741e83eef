"""Basketball box score parsing (NBA, NCAAM)."""

from __future__ import annotations

from typing import Any

from ..models import (
    BasketballBoxScore,
    BasketballPlayerLine,
    BasketballTeamBox,
    BasketballTotals,
    CanonicalGame,
    TeamRef,
)
from .stat_labels import (
    build_label_index,
    parse_count,
    parse_made_attempted,
    parse_minutes,
    shooting_pct,
    stat_value,
)


def parse_player_line(athlete: dict[str, Any], index: dict[str, int]) -> BasketballPlayerLine:
    info = athlete.get("athlete") or {}
    stats = athlete.get("stats") or []

    fgm, fga = parse_made_attempted(stat_value(stats, index, "FG"))
    fg3m, fg3a = parse_made_attempted(stat_value(stats, index, "3PT"))
    ftm, fta = parse_made_attempted(stat_value(stats, index, "FT"))
    oreb = parse_count(stat_value(stats, index, "OREB"))
    dreb = parse_count(stat_value(stats, index, "DREB"))
    reb_raw = stat_value(stats, index, "REB")
    reb = parse_count(reb_raw) if reb_raw is not None else oreb + dreb

    did_not_play = bool(athlete.get("didNotPlay"))
    return BasketballPlayerLine(
        id=str(info.get("id") or ""),
        name=info.get("shortName") or info.get("displayName") or "Unknown",
        jersey=info.get("jersey"),
        position=(info.get("position") or {}).get("abbreviation"),
        headshot=(info.get("headshot") or {}).get("href"),
        starter=bool(athlete.get("starter")),
        minutes=parse_minutes(stat_value(stats, index, "MIN")),
        points=parse_count(stat_value(stats, index, "PTS")),
        fgm=fgm,
        fga=fga,
        fg_pct=shooting_pct(fgm, fga),
        fg3m=fg3m,
        fg3a=fg3a,
        fg3_pct=shooting_pct(fg3m, fg3a),
        ftm=ftm,
        fta=fta,
        ft_pct=shooting_pct(ftm, fta),
        oreb=oreb,
        dreb=dreb,
        reb=reb,
        ast=parse_count(stat_value(stats, index, "AST")),
        stl=parse_count(stat_value(stats, index, "STL")),
        blk=parse_count(stat_value(stats, index, "BLK")),
        tov=parse_count(stat_value(stats, index, "TO")),
        pf=parse_count(stat_value(stats, index, "PF")),
        plus_minus=parse_count(stat_value(stats, index, "+/-")),
        dnp_reason=(athlete.get("reason") or "DNP") if did_not_play else None,
    )


_SUMMED_FIELDS = (
    "points", "fgm", "fga", "fg3m", "fg3a", "ftm", "fta",
    "oreb", "dreb", "reb", "ast", "stl", "blk", "tov", "pf",
)


def compute_team_totals(players: list[BasketballPlayerLine]) -> BasketballTotals:
    """Sum active player lines; percentages come from the summed makes/attempts."""
    sums = {field: 0 for field in _SUMMED_FIELDS}
    for player in players:
        for field in _SUMMED_FIELDS:
            sums[field] += getattr(player, field)
    return BasketballTotals(
        **sums,
        fg_pct=shooting_pct(sums["fgm"], sums["fga"]),
        fg3_pct=shooting_pct(sums["fg3m"], sums["fg3a"]),
        ft_pct=shooting_pct(sums["ftm"], sums["fta"]),
    )


def parse_team_box(team: TeamRef, is_home: bool, player_block: dict[str, Any] | None) -> BasketballTeamBox:
    categories = (player_block or {}).get("statistics") or []
    if not categories:
        return BasketballTeamBox(team=team, is_home=is_home)

    category = categories[0]
    index = build_label_index(category.get("labels"))
    starters: list[BasketballPlayerLine] = []
    bench: list[BasketballPlayerLine] = []
    dnp: list[BasketballPlayerLine] = []

    for athlete in category.get("athletes") or []:
        line = parse_player_line(athlete, index)
        if line.dnp_reason is not None:
            dnp.append(line)
        elif line.starter:
            starters.append(line)
        else:
            bench.append(line)

    return BasketballTeamBox(
        team=team,
        is_home=is_home,
        starters=starters,
        bench=bench,
        dnp=dnp,
        totals=compute_team_totals([*starters, *bench]),
    )


def parse_basketball_box_score(
    game: CanonicalGame,
    home_block: dict[str, Any] | None,
    away_block: dict[str, Any] | None,
) -> BasketballBoxScore:
    return BasketballBoxScore(
        game_id=game.id,
        league=game.league,
        home=parse_team_box(game.home_team, True, home_block),
        away=parse_team_box(game.away_team, False, away_block),
    )
