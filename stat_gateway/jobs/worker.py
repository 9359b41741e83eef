"""Background recomputation of season summaries and splits.

Reads queue work here and return immediately. Each job runs in its own
database session, and a failure is logged from the future's done-callback
instead of surfacing to the read that queued it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import AbstractContextManager

from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_session
from ..logging import logger
from ..models import BoxScoreResult
from ..services.extraction import ingest_box_score, recompute_player_season

SessionFactory = Callable[[], AbstractContextManager[Session]]


class RecomputeWorker:
    def __init__(
        self,
        max_workers: int | None = None,
        session_factory: SessionFactory = get_session,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers or settings.backfill_config.recompute_workers,
            thread_name_prefix="season-recompute",
        )

    def submit(self, player_ids: Iterable[int], season: int) -> Future:
        """Queue a recompute of each player's season. Returns the job future."""
        ids = sorted(set(player_ids))
        future = self._executor.submit(self._recompute, ids, season)
        future.add_done_callback(self._log_outcome("season_recompute", players=len(ids), season=season))
        return future

    def submit_box_score(self, result: BoxScoreResult) -> Future:
        """Queue player extraction for a final box score, then recompute."""
        future = self._executor.submit(self._ingest_and_recompute, result)
        future.add_done_callback(self._log_outcome("boxscore_extraction", game_id=result.game_id))
        return future

    def _recompute(self, player_ids: list[int], season: int) -> int:
        with self._session_factory() as session:
            for player_id in player_ids:
                recompute_player_season(session, player_id, season)
        return len(player_ids)

    def _ingest_and_recompute(self, result: BoxScoreResult) -> int:
        with self._session_factory() as session:
            outcome = ingest_box_score(session, result)
        if outcome.season is None or not outcome.player_ids:
            return 0
        return self._recompute(outcome.player_ids, outcome.season)

    @staticmethod
    def _log_outcome(job: str, **context) -> Callable[[Future], None]:
        def callback(future: Future) -> None:
            if future.cancelled():
                logger.warning(f"{job}_cancelled", **context)
                return
            exc = future.exception()
            if exc is not None:
                logger.error(f"{job}_failed", error=str(exc), error_type=type(exc).__name__, **context)
            else:
                logger.info(f"{job}_complete", processed=future.result(), **context)

        return callback

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
