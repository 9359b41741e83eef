"""Box score snapshot persistence behind the write-path guard.

The provider sometimes reports a game final before player stats populate.
A snapshot captured in that window would freeze an empty box score
permanently, so writes are only accepted when the game is final and every
team (or the golf leaderboard) has enough populated players.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from ..config import settings
from ..config_sports import min_populated_players
from ..db import db_models, get_session
from ..errors import ValidationRejected
from ..logging import logger
from ..models import (
    BasketballBoxScore,
    BoxScoreResult,
    FootballBoxScore,
    GolfBoxScore,
    HockeyBoxScore,
)
from ..utils.datetime_utils import now_utc

SessionFactory = Callable[[], AbstractContextManager[Session]]


def populated_counts(result: BoxScoreResult) -> list[int]:
    """Populated players per team (a single entry for a golf leaderboard)."""
    box = result.box_score
    match box:
        case BasketballBoxScore():
            return [len(team.active_players) for team in (box.home, box.away)]
        case HockeyBoxScore():
            return [len(team.skaters) + len(team.goalies) for team in (box.home, box.away)]
        case FootballBoxScore():
            return [sum(len(group.rows) for group in team.groups) for team in (box.home, box.away)]
        case GolfBoxScore():
            return [len(box.tournament.leaderboard)]
    return [0]


def populated_player_count(result: BoxScoreResult) -> int:
    """The weakest side's populated count, which is what the guard compares."""
    return min(populated_counts(result))


def validate_snapshot(result: BoxScoreResult, overrides: dict[str, int] | None = None) -> int:
    """Return the populated count, or raise if the snapshot must not be stored.

    Raises:
        ValidationRejected: if the game is not final or a side is under threshold
    """
    if result.status != "final":
        raise ValidationRejected(
            f"Game {result.game_id} is {result.status}, not final",
            game_id=result.game_id,
            reason="not_final",
        )
    threshold = min_populated_players(result.league, overrides)
    populated = populated_player_count(result)
    if populated < threshold:
        raise ValidationRejected(
            f"Game {result.game_id} has {populated} populated players, need {threshold}",
            game_id=result.game_id,
            reason="insufficient_players",
        )
    return populated


class BoxScoreSnapshotStore:
    def __init__(
        self,
        session_factory: SessionFactory = get_session,
        overrides: dict[str, int] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._overrides = overrides if overrides is not None else settings.min_players_overrides

    def store(self, result: BoxScoreResult) -> bool:
        """Persist a snapshot if it passes the guard. Rejections are silent."""
        try:
            populated = validate_snapshot(result, self._overrides)
        except ValidationRejected as exc:
            logger.debug(
                "boxscore_snapshot_rejected",
                game_id=exc.game_id,
                reason=exc.reason,
                detail=str(exc),
            )
            return False

        payload = result.model_dump(mode="json")
        stmt = insert(db_models.BoxScoreSnapshot).values(
            game_id=result.game_id,
            league_code=result.league,
            sport=result.box_score.sport,
            status=result.status,
            populated_players=populated,
            payload=payload,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["game_id"],
            set_={
                "status": stmt.excluded.status,
                "populated_players": stmt.excluded.populated_players,
                "payload": stmt.excluded.payload,
                "stored_at": now_utc(),
            },
        )
        with self._session_factory() as session:
            session.execute(stmt)

        logger.info(
            "boxscore_snapshot_stored",
            game_id=result.game_id,
            league=result.league,
            populated_players=populated,
        )
        return True

    def get(self, game_id: str) -> BoxScoreResult | None:
        with self._session_factory() as session:
            row = session.get(db_models.BoxScoreSnapshot, game_id)
            if row is None:
                return None
            return BoxScoreResult.model_validate(row.payload)

    def has(self, game_id: str) -> bool:
        with self._session_factory() as session:
            stmt = select(db_models.BoxScoreSnapshot.game_id).where(
                db_models.BoxScoreSnapshot.game_id == game_id
            )
            return session.execute(stmt).first() is not None

    def list_ids(self, league: str | None = None) -> list[str]:
        stmt = select(db_models.BoxScoreSnapshot.game_id).order_by(db_models.BoxScoreSnapshot.stored_at.desc())
        if league:
            stmt = stmt.where(db_models.BoxScoreSnapshot.league_code == league.upper())
        with self._session_factory() as session:
            return list(session.execute(stmt).scalars().all())

    def stats(self) -> dict:
        stmt = select(
            db_models.BoxScoreSnapshot.league_code,
            func.count(db_models.BoxScoreSnapshot.game_id),
        ).group_by(db_models.BoxScoreSnapshot.league_code)
        with self._session_factory() as session:
            by_league = {league: count for league, count in session.execute(stmt).all()}
        return {"total": sum(by_league.values()), "by_league": by_league}
