"""Player, game log, season summary and split persistence.

Upserts are idempotent on their natural keys so box score ingestion and
backfills can be re-run freely. Season summaries and splits are always
recomputed in full from the game logs rather than incremented.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from sqlalchemy import exists, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from ..db import db_models
from ..logging import logger
from ..models import ExtractedPlayerLine, PlayerBio, SeasonRow
from ..utils.datetime_utils import now_utc
from .tables import TOTAL_TEAM

PROVIDER = "espn"
LAST_N_WINDOWS = (5, 10, 20)

_COUNTING_FIELDS = (
    "points", "fgm", "fga", "fg3m", "fg3a", "ftm", "fta",
    "oreb", "dreb", "reb", "ast", "stl", "blk", "tov", "pf",
)


@dataclass
class LogAggregate:
    games_played: int = 0
    games_started: int = 0
    minutes: float = 0.0
    points: int = 0
    fgm: int = 0
    fga: int = 0
    fg3m: int = 0
    fg3a: int = 0
    ftm: int = 0
    fta: int = 0
    oreb: int = 0
    dreb: int = 0
    reb: int = 0
    ast: int = 0
    stl: int = 0
    blk: int = 0
    tov: int = 0
    pf: int = 0
    last_game_date: date | None = None

    def as_json(self) -> dict:
        return {
            "games_played": self.games_played,
            "games_started": self.games_started,
            "minutes": round(self.minutes, 1),
            **{field: getattr(self, field) for field in _COUNTING_FIELDS},
            "last_game_date": self.last_game_date.isoformat() if self.last_game_date else None,
        }


def aggregate_logs(logs: Iterable) -> LogAggregate:
    """Sum game logs that were actually played (DNP rows are skipped)."""
    agg = LogAggregate()
    for log in logs:
        if log.dnp_reason is not None:
            continue
        agg.games_played += 1
        agg.games_started += 1 if log.is_starter else 0
        agg.minutes += log.minutes or 0.0
        for field in _COUNTING_FIELDS:
            setattr(agg, field, getattr(agg, field) + (getattr(log, field) or 0))
        if agg.last_game_date is None or log.game_date > agg.last_game_date:
            agg.last_game_date = log.game_date
    return agg


# ---------------------------------------------------------------------------
# Players and games
# ---------------------------------------------------------------------------


def upsert_player(session: Session, bio: PlayerBio, league_code: str) -> int:
    """Upsert a player on (provider, external_id) and return the internal id."""
    stmt = insert(db_models.GatewayPlayer).values(
        provider=PROVIDER,
        external_id=bio.external_id,
        league_code=league_code,
        display_name=bio.display_name,
        first_name=bio.first_name,
        last_name=bio.last_name,
        jersey=bio.jersey,
        position=bio.position,
        current_team=bio.team_abbreviation,
        headshot_url=bio.headshot_url,
        college=bio.college,
        draft_year=bio.draft_year,
        draft_round=bio.draft_round,
        draft_pick=bio.draft_pick,
        is_active=True,
    )
    # Box score bios are sparse; never blank out richer profile fields
    stmt = stmt.on_conflict_do_update(
        index_elements=["provider", "external_id"],
        set_={
            "display_name": stmt.excluded.display_name,
            "jersey": stmt.excluded.jersey,
            "position": stmt.excluded.position,
            "current_team": stmt.excluded.current_team,
            "headshot_url": func.coalesce(stmt.excluded.headshot_url, db_models.GatewayPlayer.headshot_url),
            "college": func.coalesce(stmt.excluded.college, db_models.GatewayPlayer.college),
            "draft_year": func.coalesce(stmt.excluded.draft_year, db_models.GatewayPlayer.draft_year),
            "draft_round": func.coalesce(stmt.excluded.draft_round, db_models.GatewayPlayer.draft_round),
            "draft_pick": func.coalesce(stmt.excluded.draft_pick, db_models.GatewayPlayer.draft_pick),
            "updated_at": now_utc(),
        },
    ).returning(db_models.GatewayPlayer.id)
    player_id = session.execute(stmt).scalar_one()
    return int(player_id)


def upsert_game(
    session: Session,
    *,
    game_key: str,
    provider_event_id: str,
    league_code: str,
    season: int,
    game_date: date,
    status: str,
    home_team: str | None,
    away_team: str | None,
) -> int:
    """Upsert a game on its provider event id and return the internal id."""
    stmt = insert(db_models.GatewayGame).values(
        game_key=game_key,
        provider_event_id=provider_event_id,
        league_code=league_code,
        season=season,
        game_date=game_date,
        status=status,
        home_team=home_team,
        away_team=away_team,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["provider_event_id"],
        set_={
            "status": stmt.excluded.status,
            "game_date": stmt.excluded.game_date,
            "season": stmt.excluded.season,
            "home_team": stmt.excluded.home_team,
            "away_team": stmt.excluded.away_team,
            "updated_at": now_utc(),
        },
    ).returning(db_models.GatewayGame.id)
    return int(session.execute(stmt).scalar_one())


def upsert_game_log(
    session: Session,
    *,
    player_id: int,
    game_id: int,
    season: int,
    game_date: date,
    extracted: ExtractedPlayerLine,
) -> None:
    """Upsert one player's line for one game on (player_id, game_id)."""
    line = extracted.line
    values = {
        "player_id": player_id,
        "game_id": game_id,
        "season": season,
        "game_date": game_date,
        "team": extracted.team_abbreviation,
        "opponent": extracted.opponent_abbreviation,
        "is_home": extracted.is_home,
        "is_starter": line.starter,
        "minutes": line.minutes,
        "points": line.points,
        "fgm": line.fgm,
        "fga": line.fga,
        "fg3m": line.fg3m,
        "fg3a": line.fg3a,
        "ftm": line.ftm,
        "fta": line.fta,
        "oreb": line.oreb,
        "dreb": line.dreb,
        "reb": line.reb,
        "ast": line.ast,
        "stl": line.stl,
        "blk": line.blk,
        "tov": line.tov,
        "pf": line.pf,
        "plus_minus": line.plus_minus,
        "dnp_reason": extracted.dnp_reason,
    }
    stmt = insert(db_models.PlayerGameLog).values(**values)
    update_cols = {key: stmt.excluded[key] for key in values if key not in ("player_id", "game_id")}
    update_cols["updated_at"] = now_utc()
    stmt = stmt.on_conflict_do_update(
        constraint="uq_player_game_log",
        set_=update_cols,
    )
    session.execute(stmt)


# ---------------------------------------------------------------------------
# Recomputation
# ---------------------------------------------------------------------------


def _season_logs(session: Session, player_id: int, season: int) -> Sequence:
    stmt = (
        select(db_models.PlayerGameLog)
        .where(
            db_models.PlayerGameLog.player_id == player_id,
            db_models.PlayerGameLog.season == season,
        )
        .order_by(db_models.PlayerGameLog.game_date.desc())
    )
    return session.execute(stmt).scalars().all()


def recompute_season_summary(session: Session, player_id: int, season: int) -> LogAggregate | None:
    """Rebuild the TOTAL summary for a player-season from its game logs."""
    agg = aggregate_logs(_season_logs(session, player_id, season))
    if agg.games_played == 0:
        logger.debug("season_summary_no_games", player_id=player_id, season=season)
        return None

    values = {
        "player_id": player_id,
        "season": season,
        "team": TOTAL_TEAM,
        "games_played": agg.games_played,
        "games_started": agg.games_started,
        "minutes_total": round(agg.minutes, 1),
        "points_total": agg.points,
        **{field: getattr(agg, field) for field in _COUNTING_FIELDS if field != "points"},
    }
    stmt = insert(db_models.PlayerSeasonSummary).values(**values)
    update_cols = {key: stmt.excluded[key] for key in values if key not in ("player_id", "season", "team")}
    update_cols["updated_at"] = now_utc()
    stmt = stmt.on_conflict_do_update(constraint="uq_player_season_team", set_=update_cols)
    session.execute(stmt)
    return agg


def _upsert_split(
    session: Session,
    player_id: int,
    season: int,
    split_type: str,
    split_key: str,
    agg: LogAggregate,
) -> None:
    stmt = insert(db_models.PlayerSplit).values(
        player_id=player_id,
        season=season,
        split_type=split_type,
        split_key=split_key,
        stats_json=agg.as_json(),
        games_included=agg.games_played,
        last_game_date=agg.last_game_date,
    )
    stmt = stmt.on_conflict_do_update(
        constraint="uq_player_split",
        set_={
            "stats_json": stmt.excluded.stats_json,
            "games_included": stmt.excluded.games_included,
            "last_game_date": stmt.excluded.last_game_date,
            "updated_at": now_utc(),
        },
    )
    session.execute(stmt)


def compute_splits(logs: Sequence) -> dict[tuple[str, str], LogAggregate]:
    """Group played logs into HOME_AWAY, LAST_N and BY_MONTH aggregates.

    ``logs`` must be ordered most recent first. Empty groups are omitted.
    """
    played = [log for log in logs if log.dnp_reason is None]
    splits: dict[tuple[str, str], LogAggregate] = {}

    for key, is_home in (("HOME", True), ("AWAY", False)):
        agg = aggregate_logs(log for log in played if log.is_home is is_home)
        if agg.games_played:
            splits[("HOME_AWAY", key)] = agg

    for n in LAST_N_WINDOWS:
        agg = aggregate_logs(played[:n])
        if agg.games_played:
            splits[("LAST_N", f"LAST{n}")] = agg

    months: dict[int, list] = {}
    for log in played:
        months.setdefault(log.game_date.month, []).append(log)
    for month in sorted(months):
        splits[("BY_MONTH", calendar.month_abbr[month].upper())] = aggregate_logs(months[month])

    return splits


def recompute_splits(session: Session, player_id: int, season: int) -> int:
    """Rebuild all splits for a player-season. Returns the number written."""
    splits = compute_splits(_season_logs(session, player_id, season))
    for (split_type, split_key), agg in splits.items():
        _upsert_split(session, player_id, season, split_type, split_key, agg)
    logger.debug("player_splits_recomputed", player_id=player_id, season=season, splits=len(splits))
    return len(splits)


# ---------------------------------------------------------------------------
# Reads and backfill helpers
# ---------------------------------------------------------------------------


def get_player(session: Session, player_id: str | int, *, by_external: bool = False):
    """Look a player up by internal id, or by provider athlete id when ``by_external``.

    Provider ids are numeric too, so the two id spaces are never guessed
    from the value itself.
    """
    if by_external:
        stmt = select(db_models.GatewayPlayer).where(
            db_models.GatewayPlayer.provider == PROVIDER,
            db_models.GatewayPlayer.external_id == str(player_id),
        )
        return session.execute(stmt).scalars().first()
    if not str(player_id).isdigit():
        return None
    return session.get(db_models.GatewayPlayer, int(player_id))


def get_historical_seasons(session: Session, player_id: int) -> Sequence:
    stmt = (
        select(db_models.PlayerSeasonSummary)
        .where(db_models.PlayerSeasonSummary.player_id == player_id)
        .order_by(db_models.PlayerSeasonSummary.season.desc(), db_models.PlayerSeasonSummary.team.asc())
    )
    return session.execute(stmt).scalars().all()


def find_final_games_missing_logs(session: Session, limit: int = 25) -> Sequence:
    """Final games with no player game logs, newest first."""
    has_logs = exists().where(db_models.PlayerGameLog.game_id == db_models.GatewayGame.id)
    stmt = (
        select(db_models.GatewayGame)
        .where(db_models.GatewayGame.status == "final", ~has_logs)
        .order_by(db_models.GatewayGame.game_date.desc())
        .limit(limit)
    )
    return session.execute(stmt).scalars().all()


def list_active_players(session: Session, league_code: str = "NBA") -> Sequence:
    stmt = (
        select(db_models.GatewayPlayer)
        .where(
            db_models.GatewayPlayer.league_code == league_code,
            db_models.GatewayPlayer.is_active.is_(True),
        )
        .order_by(db_models.GatewayPlayer.id)
    )
    return session.execute(stmt).scalars().all()


def players_with_stored_seasons(session: Session, player_ids: Sequence[int]) -> set[int]:
    if not player_ids:
        return set()
    stmt = (
        select(db_models.PlayerSeasonSummary.player_id)
        .where(db_models.PlayerSeasonSummary.player_id.in_(player_ids))
        .distinct()
    )
    return set(session.execute(stmt).scalars().all())


def upsert_season_totals(session: Session, player_id: int, row: SeasonRow) -> None:
    """Store a provider season row as counting totals (average x games played)."""
    games = row.games_played

    def total(per_game: float) -> int:
        return int(round(per_game * games))

    values = {
        "player_id": player_id,
        "season": row.season,
        "team": row.team_abbreviation or TOTAL_TEAM,
        "games_played": games,
        "games_started": row.games_started,
        "minutes_total": round(row.mpg * games, 1),
        "points_total": total(row.ppg),
        "reb": total(row.rpg),
        "ast": total(row.apg),
        "stl": total(row.spg),
        "blk": total(row.bpg),
        "fgm": row.fgm,
        "fga": row.fga,
        "fg3m": row.fg3m,
        "fg3a": row.fg3a,
        "ftm": row.ftm,
        "fta": row.fta,
    }
    stmt = insert(db_models.PlayerSeasonSummary).values(**values)
    update_cols = {key: stmt.excluded[key] for key in values if key not in ("player_id", "season", "team")}
    update_cols["updated_at"] = now_utc()
    stmt = stmt.on_conflict_do_update(constraint="uq_player_season_team", set_=update_cols)
    session.execute(stmt)
