"""Celery tasks that feed player game logs and historical seasons.

Batch tasks hold a Redis lock so overlapping beat runs never double-spend
provider quota. Provider fetches run at most ``backfill_config.concurrency``
at a time, and recomputation is deferred until a batch completes so each
affected (player, season) is rebuilt once.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, timedelta

from celery import shared_task

from ..config import settings
from ..config_sports import get_extraction_leagues, get_league_config, parse_game_id
from ..db import get_session
from ..errors import GatewayError, QuotaExceeded
from ..logging import logger
from ..persistence import players as player_store
from ..persistence.boxscore_snapshots import BoxScoreSnapshotStore
from ..provider import ProviderClient
from ..services.extraction import IngestResult, ingest_box_score, recompute_player_season
from ..transform.athletes import parse_season_averages
from ..transform.boxscores import transform_box_score
from ..transform.games import transform_scoreboard
from ..utils.date_utils import current_season, season_from_date
from ..utils.datetime_utils import to_et_date, today_et
from ..utils.redis_lock import LOCK_TIMEOUT_1HOUR, acquire_redis_lock, release_redis_lock

_client: ProviderClient | None = None


def get_provider_client() -> ProviderClient:
    """One client (and so one quota tracker) per worker process."""
    global _client
    if _client is None:
        _client = ProviderClient()
    return _client


def _ingest_game(client: ProviderClient, league_code: str, event_id: str) -> IngestResult | None:
    """Fetch one summary and, if the guard accepts it, write its player logs."""
    result = transform_box_score(league_code, client.fetch_summary(league_code, event_id))
    if not BoxScoreSnapshotStore().store(result):
        logger.info("player_ingest_skipped_guard", game_id=result.game_id, status=result.status)
        return None
    with get_session() as session:
        return ingest_box_score(session, result)


def _recompute_affected(affected: set[tuple[int, int]]) -> int:
    recomputed = 0
    for player_id, season in sorted(affected):
        try:
            with get_session() as session:
                recompute_player_season(session, player_id, season)
            recomputed += 1
        except Exception as exc:
            logger.warning("season_recompute_failed", player_id=player_id, season=season, error=str(exc))
    return recomputed


def _run_game_batch(games: list[tuple[str, str]]) -> dict:
    """Ingest (league_code, event_id) pairs with bounded concurrency."""
    client = get_provider_client()
    affected: set[tuple[int, int]] = set()
    summary = {"games": len(games), "ingested": 0, "skipped": 0, "failed": 0}

    with ThreadPoolExecutor(max_workers=settings.backfill_config.concurrency) as pool:
        futures = {
            pool.submit(_ingest_game, client, league_code, event_id): (league_code, event_id)
            for league_code, event_id in games
        }
        for future in as_completed(futures):
            league_code, event_id = futures[future]
            try:
                outcome = future.result()
            except Exception as exc:
                summary["failed"] += 1
                logger.warning(
                    "player_ingest_game_failed",
                    league=league_code,
                    event_id=event_id,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                continue
            if outcome is None or outcome.season is None:
                summary["skipped"] += 1
                continue
            summary["ingested"] += 1
            affected.update((player_id, outcome.season) for player_id in outcome.player_ids)

    summary["recomputed"] = _recompute_affected(affected)
    return summary


@shared_task(name="ingest_players_for_game")
def ingest_players_for_game(game_id: str) -> dict:
    """Extract player logs from one final game, e.g. ``nba_401584701``."""
    league, event_id = parse_game_id(game_id)
    if not league.player_extraction:
        return {"status": "skipped", "reason": "extraction_disabled", "league": league.code}
    summary = _run_game_batch([(league.code, event_id)])
    logger.info("ingest_players_for_game_complete", game_id=game_id, **summary)
    return summary


@shared_task(name="ingest_players_for_date")
def ingest_players_for_date(league_code: str, day: str | None = None) -> dict:
    """Record a day's final games and extract their player logs.

    ``day`` is an ISO date; defaults to yesterday (US Eastern). Games that
    fail here keep no logs and are retried by the missing-log backfill.
    """
    league = get_league_config(league_code)
    target = date.fromisoformat(day) if day else today_et() - timedelta(days=1)

    lock_name = f"lock:ingest_players:{league.code}:{target.isoformat()}"
    if not acquire_redis_lock(lock_name, timeout=LOCK_TIMEOUT_1HOUR):
        logger.warning("ingest_players_for_date_skipped_locked", league=league.code, day=target.isoformat())
        return {"status": "skipped", "reason": "in_progress"}

    try:
        client = get_provider_client()
        games = transform_scoreboard(league.code, client.fetch_scoreboard(league.code, target))
        finals = [game for game in games if game.status == "final"]

        with get_session() as session:
            for game in finals:
                game_date = to_et_date(game.start_time)
                player_store.upsert_game(
                    session,
                    game_key=game.id,
                    provider_event_id=game.provider_event_id,
                    league_code=league.code,
                    season=season_from_date(game_date, league.code),
                    game_date=game_date,
                    status=game.status,
                    home_team=game.home_team.abbreviation,
                    away_team=game.away_team.abbreviation,
                )

        summary: dict = {"scheduled": len(games), "final": len(finals)}
        if league.player_extraction and finals:
            summary.update(_run_game_batch([(league.code, game.provider_event_id) for game in finals]))
        logger.info("ingest_players_for_date_complete", league=league.code, day=target.isoformat(), **summary)
        return summary
    finally:
        release_redis_lock(lock_name)


@shared_task(name="backfill_missing_game_logs")
def backfill_missing_game_logs(limit: int | None = None) -> dict:
    """Ingest final games that have no player logs yet, newest first.

    Re-runnable: a game that fails simply shows up again next run.
    """
    limit = limit or settings.backfill_config.batch_limit
    lock_name = "lock:backfill_missing_game_logs"
    if not acquire_redis_lock(lock_name, timeout=LOCK_TIMEOUT_1HOUR):
        logger.warning("backfill_missing_game_logs_skipped_locked")
        return {"status": "skipped", "reason": "in_progress"}

    try:
        leagues = set(get_extraction_leagues())
        with get_session() as session:
            rows = player_store.find_final_games_missing_logs(session, limit)
            games = [(row.league_code, row.provider_event_id) for row in rows if row.league_code in leagues]

        if not games:
            logger.info("backfill_missing_game_logs_nothing_to_do")
            return {"games": 0}

        summary = _run_game_batch(games)
        logger.info("backfill_missing_game_logs_complete", **summary)
        return summary
    finally:
        release_redis_lock(lock_name)


def _fetch_averages(client: ProviderClient, league_code: str, external_id: str):
    return parse_season_averages(client.fetch_athlete_stats(league_code, external_id))


@shared_task(name="backfill_player_seasons")
def backfill_player_seasons(force: bool = False, league_code: str = "NBA") -> dict:
    """Store provider season averages for completed seasons as totals.

    Without ``force``, players who already have stored seasons are skipped.
    The current season is never stored; it is always read live.
    """
    league = get_league_config(league_code)
    lock_name = f"lock:backfill_player_seasons:{league.code}"
    if not acquire_redis_lock(lock_name, timeout=LOCK_TIMEOUT_1HOUR):
        logger.warning("backfill_player_seasons_skipped_locked", league=league.code)
        return {"status": "skipped", "reason": "in_progress"}

    try:
        cfg = settings.backfill_config
        season_now = current_season(today_et(), league.code)
        with get_session() as session:
            players = [(p.id, p.external_id) for p in player_store.list_active_players(session, league.code)]
            if not force:
                done = player_store.players_with_stored_seasons(session, [pid for pid, _ in players])
                players = [(pid, ext) for pid, ext in players if pid not in done]

        client = get_provider_client()
        summary = {"players": len(players), "stored_rows": 0, "failed": 0, "stopped_on_quota": False}

        for start in range(0, len(players), cfg.concurrency):
            batch = players[start:start + cfg.concurrency]
            with ThreadPoolExecutor(max_workers=cfg.concurrency) as pool:
                futures = {
                    pool.submit(_fetch_averages, client, league.code, external_id): player_id
                    for player_id, external_id in batch
                }
                results = {}
                for future in as_completed(futures):
                    player_id = futures[future]
                    try:
                        results[player_id] = future.result()
                    except QuotaExceeded as exc:
                        summary["stopped_on_quota"] = True
                        logger.warning("backfill_player_seasons_quota", player_id=player_id, reason=exc.reason)
                    except GatewayError as exc:
                        summary["failed"] += 1
                        logger.warning("backfill_player_seasons_fetch_failed", player_id=player_id, error=str(exc))

            with get_session() as session:
                for player_id, averages in results.items():
                    for row in averages.seasons:
                        if row.season is None or row.season >= season_now:
                            continue
                        player_store.upsert_season_totals(session, player_id, row)
                        summary["stored_rows"] += 1

            if summary["stopped_on_quota"]:
                break
            if start + cfg.concurrency < len(players):
                time.sleep(cfg.inter_batch_delay_seconds)

        logger.info("backfill_player_seasons_complete", league=league.code, **summary)
        return summary
    finally:
        release_redis_lock(lock_name)
