"""Player extraction from basketball box scores.

A final box score fans out into one game row, one player row per athlete
and one game log per athlete. Season summaries and splits are rebuilt from
the logs afterwards, never incremented in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from ..config_sports import get_league_config
from ..logging import logger
from ..models import (
    BasketballBoxScore,
    BasketballTeamBox,
    BoxScoreResult,
    ExtractedPlayerLine,
    PlayerBio,
)
from ..persistence import players as player_store
from ..utils.date_utils import season_from_date
from ..utils.datetime_utils import to_et_date


@dataclass
class IngestResult:
    game_id: str
    season: int | None = None
    player_ids: list[int] = field(default_factory=list)
    failed: int = 0


def _team_lines(
    result: BoxScoreResult,
    team_box: BasketballTeamBox,
    opponent_box: BasketballTeamBox,
) -> list[ExtractedPlayerLine]:
    game = result.game
    lines: list[ExtractedPlayerLine] = []
    for line in [*team_box.starters, *team_box.bench, *team_box.dnp]:
        if not line.id:
            continue
        # Box scores may omit REB and carry only the offensive/defensive split
        if line.reb == 0 and (line.oreb or line.dreb):
            line = line.model_copy(update={"reb": line.oreb + line.dreb})
        bio = PlayerBio(
            external_id=line.id,
            display_name=line.name,
            jersey=line.jersey,
            position=line.position,
            team_abbreviation=team_box.team.abbreviation,
            team_name=team_box.team.name,
            headshot_url=line.headshot,
        )
        lines.append(
            ExtractedPlayerLine(
                bio=bio,
                league=result.league,
                game_id=result.game_id,
                provider_event_id=game.provider_event_id,
                game_date=game.start_time,
                team_abbreviation=team_box.team.abbreviation,
                opponent_abbreviation=opponent_box.team.abbreviation,
                is_home=team_box.is_home,
                line=line,
                dnp_reason=line.dnp_reason,
            )
        )
    return lines


def extract_player_lines(result: BoxScoreResult) -> list[ExtractedPlayerLine]:
    """Turn a basketball box score into one record per athlete (DNPs included)."""
    box = result.box_score
    if not isinstance(box, BasketballBoxScore) or result.game is None:
        return []
    return [
        *_team_lines(result, box.home, box.away),
        *_team_lines(result, box.away, box.home),
    ]


def ingest_box_score(session: Session, result: BoxScoreResult) -> IngestResult:
    """Upsert the game, its players and their game logs.

    One athlete failing (bad data, constraint error) is logged and skipped;
    the remaining athletes are still written. Recomputation is left to the
    caller so batches can defer it.
    """
    outcome = IngestResult(game_id=result.game_id)
    lines = extract_player_lines(result)
    if not lines:
        logger.warning("player_extraction_no_lines", game_id=result.game_id, league=result.league)
        return outcome

    league = get_league_config(result.league)
    game = result.game
    game_date = to_et_date(game.start_time)
    season = season_from_date(game_date, league.code)
    outcome.season = season

    game_pk = player_store.upsert_game(
        session,
        game_key=game.id,
        provider_event_id=game.provider_event_id,
        league_code=league.code,
        season=season,
        game_date=game_date,
        status=game.status,
        home_team=game.home_team.abbreviation,
        away_team=game.away_team.abbreviation,
    )

    for extracted in lines:
        try:
            with session.begin_nested():
                player_id = player_store.upsert_player(session, extracted.bio, league.code)
                player_store.upsert_game_log(
                    session,
                    player_id=player_id,
                    game_id=game_pk,
                    season=season,
                    game_date=game_date,
                    extracted=extracted,
                )
        except Exception as exc:
            outcome.failed += 1
            logger.warning(
                "player_extraction_failed",
                game_id=result.game_id,
                athlete_id=extracted.bio.external_id,
                error=str(exc),
            )
            continue
        outcome.player_ids.append(player_id)

    logger.info(
        "player_extraction_complete",
        game_id=result.game_id,
        season=season,
        players=len(outcome.player_ids),
        failed=outcome.failed,
    )
    return outcome


def recompute_player_season(session: Session, player_id: int, season: int) -> None:
    """Rebuild the TOTAL season summary and every split from the game logs."""
    player_store.recompute_season_summary(session, player_id, season)
    player_store.recompute_splits(session, player_id, season)
