"""Season and career aggregation for player stat pages.

Completed seasons come from the persisted summaries; the season in progress
always comes from a fresh provider fetch. Career figures are weighted by
games played over TOTAL rows only, and career shooting percentages are
recomputed from summed makes and attempts. Averaging per-season percentages
would over-weight low-volume seasons.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager
from datetime import date

from sqlalchemy.orm import Session

from ..db import get_session
from ..errors import NotFound, ProviderUnavailable, QuotaExceeded
from ..logging import logger
from ..models import AthleteSeasonAverages, PlayerBio, SeasonRow, StatCentral
from ..persistence import players as player_store
from ..persistence.tables import TOTAL_TEAM
from ..provider import ProviderClient
from ..transform.athletes import draft_summary, parse_athlete_profile, parse_season_averages
from ..transform.stat_labels import shooting_pct
from ..utils.date_utils import current_season, season_label
from ..utils.datetime_utils import now_utc, today_et
from ..utils.parsing import round1

SessionFactory = Callable[[], AbstractContextManager[Session]]


def _per_game(total: float, games: int) -> float:
    return round1(total / games) if games else 0.0


def row_from_summary(summary) -> SeasonRow:
    """Derive a display row from a stored season summary (totals only)."""
    games = summary.games_played or 0
    team = None if not summary.team or summary.team == TOTAL_TEAM else summary.team
    return SeasonRow(
        season=summary.season,
        season_label=season_label(summary.season),
        team_abbreviation=team,
        games_played=games,
        games_started=summary.games_started or 0,
        ppg=_per_game(summary.points_total or 0, games),
        rpg=_per_game(summary.reb or 0, games),
        apg=_per_game(summary.ast or 0, games),
        spg=_per_game(summary.stl or 0, games),
        bpg=_per_game(summary.blk or 0, games),
        mpg=_per_game(summary.minutes_total or 0.0, games),
        fg_pct=shooting_pct(summary.fgm or 0, summary.fga or 0),
        fg3_pct=shooting_pct(summary.fg3m or 0, summary.fg3a or 0),
        ft_pct=shooting_pct(summary.ftm or 0, summary.fta or 0),
        fgm=summary.fgm or 0,
        fga=summary.fga or 0,
        fg3m=summary.fg3m or 0,
        fg3a=summary.fg3a or 0,
        ftm=summary.ftm or 0,
        fta=summary.fta or 0,
        source="historical",
    )


def compute_career_from_seasons(rows: Sequence[SeasonRow]) -> SeasonRow:
    """Career row weighted by games played.

    Only TOTAL rows contribute so a traded player's team rows are not
    counted twice; when no TOTAL rows exist every row is used.
    """
    totals = [row for row in rows if row.is_total]
    contributing = totals or list(rows)
    games = sum(row.games_played for row in contributing)
    if games == 0:
        return SeasonRow(season_label="Career", source="computed")

    def weighted(field: str) -> float:
        return round1(sum(getattr(row, field) * row.games_played for row in contributing) / games)

    made = {field: sum(getattr(row, field) for row in contributing) for field in ("fgm", "fga", "fg3m", "fg3a", "ftm", "fta")}
    return SeasonRow(
        season_label="Career",
        games_played=games,
        games_started=sum(row.games_started for row in contributing),
        ppg=weighted("ppg"),
        rpg=weighted("rpg"),
        apg=weighted("apg"),
        spg=weighted("spg"),
        bpg=weighted("bpg"),
        mpg=weighted("mpg"),
        fg_pct=shooting_pct(made["fgm"], made["fga"]),
        fg3_pct=shooting_pct(made["fg3m"], made["fg3a"]),
        ft_pct=shooting_pct(made["ftm"], made["fta"]),
        **made,
        source="computed",
    )


def merge_season_rows(
    historical: Sequence[SeasonRow],
    provider: Sequence[SeasonRow],
    season_now: int,
) -> list[SeasonRow]:
    """Stored rows for completed seasons, provider rows for the current one.

    Result is ordered most recent season first; within a season team rows
    precede the TOTAL row.
    """
    merged = [row for row in historical if row.season is not None and row.season < season_now]
    merged.extend(row for row in provider if row.season is not None and row.season >= season_now)
    merged.sort(key=lambda row: (-(row.season or 0), row.is_total, row.team_abbreviation or ""))
    return merged


def _stored_bio(player) -> PlayerBio:
    return PlayerBio(
        external_id=player.external_id,
        display_name=player.display_name,
        first_name=player.first_name,
        last_name=player.last_name,
        jersey=player.jersey,
        position=player.position,
        team_abbreviation=player.current_team,
        headshot_url=player.headshot_url,
        college=player.college,
        draft_year=player.draft_year,
        draft_round=player.draft_round,
        draft_pick=player.draft_pick,
        draft_summary=draft_summary(player.draft_year, player.draft_round, player.draft_pick),
    )


def merge_bio(stored: PlayerBio | None, profile: PlayerBio | None) -> PlayerBio | None:
    """Provider profile fields win; stored fields fill whatever the provider left blank."""
    if stored is None or profile is None:
        return profile or stored
    fresh = {key: value for key, value in profile.model_dump().items() if value not in (None, "")}
    return stored.model_copy(update=fresh)


class SeasonAggregationService:
    def __init__(
        self,
        client: ProviderClient,
        session_factory: SessionFactory = get_session,
        today: Callable[[], date] = today_et,
    ) -> None:
        self.client = client
        self._session_factory = session_factory
        self._today = today

    def _load_stored(
        self, player_id: str, by_external: bool
    ) -> tuple[int | None, str | None, PlayerBio | None, list[SeasonRow]]:
        with self._session_factory() as session:
            player = player_store.get_player(session, player_id, by_external=by_external)
            if player is None:
                return None, None, None, []
            summaries = player_store.get_historical_seasons(session, player.id)
            return (
                player.id,
                player.league_code,
                _stored_bio(player),
                [row_from_summary(s) for s in summaries],
            )

    def _fetch_provider(
        self, league: str, external_id: str
    ) -> tuple[PlayerBio | None, AthleteSeasonAverages, bool]:
        """Profile and averages from the provider; the flag reports degradation."""
        try:
            profile = parse_athlete_profile(self.client.fetch_athlete(league, external_id))
            averages = parse_season_averages(self.client.fetch_athlete_stats(league, external_id))
        except (ProviderUnavailable, QuotaExceeded) as exc:
            logger.warning(
                "stat_central_degraded",
                external_id=external_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return None, AthleteSeasonAverages(), True
        except NotFound:
            logger.info("stat_central_provider_missing", external_id=external_id)
            return None, AthleteSeasonAverages(), False
        return profile, averages, False

    def build_stat_central(
        self, player_id: str, league: str | None = None, *, by_external: bool = False
    ) -> StatCentral:
        """Assemble bio, season rows and a career row for one player.

        ``player_id`` is an internal id, or a provider athlete id when
        ``by_external`` is set. A stored player's own league takes precedence
        over ``league``, which defaults to NBA.

        Raises:
            NotFound: if neither the store nor the provider knows the player
        """
        internal_id, stored_league, stored_bio, historical = self._load_stored(str(player_id), by_external)
        if stored_bio is None and not by_external:
            raise NotFound(f"Player not found: {player_id}")
        league = stored_league or league or "NBA"
        external_id = stored_bio.external_id if stored_bio else str(player_id)

        profile, averages, degraded = self._fetch_provider(league, external_id)
        bio = merge_bio(stored_bio, profile)
        if bio is None:
            if degraded:
                raise ProviderUnavailable(f"Player {player_id} unavailable while provider is degraded")
            raise NotFound(f"Player not found: {player_id}")

        season_now = current_season(self._today(), league)
        seasons = merge_season_rows(historical, averages.seasons, season_now)
        career = averages.career if averages.career is not None else compute_career_from_seasons(seasons)

        logger.debug(
            "stat_central_built",
            player_id=player_id,
            seasons=len(seasons),
            degraded=degraded,
        )
        return StatCentral(
            player_id=str(internal_id) if internal_id is not None else external_id,
            league=league.upper(),
            bio=bio,
            seasons=seasons,
            career=career,
            degraded=degraded,
            generated_at=now_utc(),
        )
