"""Read façade over the provider client, caches and stores.

This is the only surface downstream collaborators (HTTP routes, CLIs) call.
Every read goes cache or snapshot first and only then spends provider
quota, with identical in-flight fetches collapsed into one.
"""

from __future__ import annotations

from datetime import date

from ..cache.policy import box_score_ttl, scoreboard_ttl
from ..cache.response_cache import ResponseCache
from ..config import settings
from ..config_sports import get_league_config, parse_game_id
from ..errors import NotFound
from ..jobs.worker import RecomputeWorker
from ..logging import logger
from ..models import BoxScoreResult, CanonicalGame, GolfBoxScore, StatCentral, Tournament
from ..persistence.boxscore_snapshots import BoxScoreSnapshotStore
from ..provider import ProviderClient, RequestDeduplicator
from ..transform.boxscores import transform_box_score
from ..transform.games import transform_scoreboard
from ..transform.golf import transform_calendar
from ..utils.datetime_utils import to_et_date, today_et
from .season_aggregation import SeasonAggregationService


def _game_day(result: BoxScoreResult) -> date | None:
    """ET calendar day a box score belongs to; a tournament's last day for golf."""
    if isinstance(result.box_score, GolfBoxScore):
        tournament = result.box_score.tournament
        return tournament.end_date or tournament.start_date
    if result.game is not None and result.game.start_time is not None:
        return to_et_date(result.game.start_time)
    return None


class StatGateway:
    def __init__(
        self,
        client: ProviderClient | None = None,
        cache: ResponseCache | None = None,
        snapshots: BoxScoreSnapshotStore | None = None,
        dedup: RequestDeduplicator | None = None,
        worker: RecomputeWorker | None = None,
        aggregation: SeasonAggregationService | None = None,
    ) -> None:
        self.client = client or ProviderClient()
        self.cache = cache or ResponseCache()
        self.snapshots = snapshots or BoxScoreSnapshotStore()
        self.dedup = dedup or RequestDeduplicator(
            stale_after_seconds=settings.backfill_config.dedup_window_seconds
        )
        self.worker = worker or RecomputeWorker()
        self.aggregation = aggregation or SeasonAggregationService(self.client)

    # -------------------------------------------------------------------------
    # Games
    # -------------------------------------------------------------------------
    def scoreboard(self, league: str, day: date | None = None) -> list[CanonicalGame]:
        """Games for a league on a calendar day (US Eastern "today" by default)."""
        cfg = get_league_config(league)
        if cfg.sport == "golf":
            raise ValueError(f"{cfg.code} has no daily scoreboard; use golf_schedule()")
        today = today_et()
        day = day or today
        key = self.cache.key("scoreboard", cfg.code, day.isoformat())

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("scoreboard_cache_hit", league=cfg.code, day=day.isoformat())
            return [CanonicalGame.model_validate(game) for game in cached]

        games = self.dedup.dedupe(
            f"scoreboard:{cfg.code}:{day.isoformat()}",
            lambda: transform_scoreboard(cfg.code, self.client.fetch_scoreboard(cfg.code, day)),
        )
        self.cache.set(
            key,
            [game.model_dump(mode="json") for game in games],
            scoreboard_ttl(games, day, today),
        )
        return games

    def box_score(self, game_id: str) -> BoxScoreResult:
        """A game's box score: stored final snapshot, then cache, then provider.

        A freshly fetched result is offered to the persistence guard. When
        the guard accepts a basketball game, player extraction is queued on
        the recompute worker without blocking this read.

        Raises:
            NotFound: if the id is malformed or the provider has no such event
        """
        try:
            league, event_id = parse_game_id(game_id)
        except ValueError as exc:
            raise NotFound(str(exc)) from exc

        snapshot = self.snapshots.get(game_id)
        if snapshot is not None:
            logger.debug("boxscore_snapshot_hit", game_id=game_id)
            return snapshot

        key = self.cache.key("boxscore", game_id)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("boxscore_cache_hit", game_id=game_id)
            return BoxScoreResult.model_validate(cached)

        # Guard, cache write and extraction run once per shared fetch, not per waiter.
        def fetch() -> BoxScoreResult:
            if league.sport == "golf":
                payload = self.client.fetch_golf_leaderboard(league.code, event_id)
            else:
                payload = self.client.fetch_summary(league.code, event_id)
            result = transform_box_score(league.code, payload)

            stored = self.snapshots.store(result)
            if result.status == "final" and not stored:
                # Rejected finals are re-fetched on the next read.
                logger.info("boxscore_not_cached_guard_rejected", game_id=game_id)
            else:
                ttl = box_score_ttl(result.status, _game_day(result), today_et())
                self.cache.set(key, result.model_dump(mode="json"), ttl)

            if stored and league.player_extraction:
                self.worker.submit_box_score(result)
            return result

        return self.dedup.dedupe(f"boxscore:{game_id}", fetch)

    # -------------------------------------------------------------------------
    # Golf
    # -------------------------------------------------------------------------
    def golf_leaderboard(self, tournament_id: str) -> Tournament:
        result = self.box_score(tournament_id)
        if not isinstance(result.box_score, GolfBoxScore):
            raise NotFound(f"{tournament_id} is not a golf tournament")
        return result.box_score.tournament

    def golf_schedule(self, league: str) -> list[Tournament]:
        cfg = get_league_config(league)
        key = self.cache.key("golf-calendar", cfg.code)
        cached = self.cache.get(key)
        if cached is not None:
            return [Tournament.model_validate(item) for item in cached]

        tournaments = self.dedup.dedupe(
            f"golf-calendar:{cfg.code}",
            lambda: transform_calendar(cfg.code, self.client.fetch_golf_calendar(cfg.code)),
        )
        self.cache.set(
            key,
            [item.model_dump(mode="json") for item in tournaments],
            settings.cache_config.final_same_day_ttl_seconds,
        )
        return tournaments

    # -------------------------------------------------------------------------
    # Players
    # -------------------------------------------------------------------------
    def stat_central(self, player_id: str, league: str | None = None, *, by_external: bool = False) -> StatCentral:
        return self.aggregation.build_stat_central(player_id, league, by_external=by_external)

    # -------------------------------------------------------------------------
    # Visibility
    # -------------------------------------------------------------------------
    def quota_status(self) -> dict:
        status = self.client.quota.status()
        status["pending_requests"] = self.dedup.pending_count()
        return status

    def health(self) -> dict:
        provider = self.client.health()
        return {
            "status": provider["status"],
            "provider": provider,
            "pending_requests": self.dedup.pending_count(),
        }

    def close(self) -> None:
        self.dedup.shutdown()
        self.worker.shutdown(wait=False)
        self.client.close()
