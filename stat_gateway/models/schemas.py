"""Pydantic models produced by the transformation layer and read services."""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

GameStatus = Literal["scheduled", "live", "final"]
RoundStatus = Literal["In Progress", "Complete", "Scheduled", "Delayed", "Suspended"]


class TeamRef(BaseModel):
    id: str  # "{league}_{teamId}"
    provider_id: str
    abbreviation: str
    name: str
    short_name: str | None = None
    logo: str | None = None
    record: str | None = None
    conference: str | None = None  # college leagues only
    score: int | None = None  # None while scheduled


class Venue(BaseModel):
    id: str  # "venue_{id}"
    name: str
    city: str | None = None
    state: str | None = None


class CanonicalGame(BaseModel):
    id: str  # "{league}_{providerEventId}"
    provider_event_id: str
    league: str
    start_time: datetime | None = None
    status: GameStatus
    period: str | None = None
    clock: str | None = None
    overtime_periods: int = 0
    venue: Venue | None = None
    broadcast: str | None = None
    home_team: TeamRef
    away_team: TeamRef


# ---------------------------------------------------------------------------
# Basketball
# ---------------------------------------------------------------------------


class BasketballPlayerLine(BaseModel):
    id: str
    name: str
    jersey: str | None = None
    position: str | None = None
    headshot: str | None = None
    starter: bool = False
    minutes: float = 0.0
    points: int = 0
    fgm: int = 0
    fga: int = 0
    fg_pct: float = 0.0
    fg3m: int = 0
    fg3a: int = 0
    fg3_pct: float = 0.0
    ftm: int = 0
    fta: int = 0
    ft_pct: float = 0.0
    oreb: int = 0
    dreb: int = 0
    reb: int = 0
    ast: int = 0
    stl: int = 0
    blk: int = 0
    tov: int = 0
    pf: int = 0
    plus_minus: int = 0
    dnp_reason: str | None = None


class BasketballTotals(BaseModel):
    points: int = 0
    fgm: int = 0
    fga: int = 0
    fg_pct: float = 0.0
    fg3m: int = 0
    fg3a: int = 0
    fg3_pct: float = 0.0
    ftm: int = 0
    fta: int = 0
    ft_pct: float = 0.0
    oreb: int = 0
    dreb: int = 0
    reb: int = 0
    ast: int = 0
    stl: int = 0
    blk: int = 0
    tov: int = 0
    pf: int = 0


class BasketballTeamBox(BaseModel):
    team: TeamRef
    is_home: bool
    starters: list[BasketballPlayerLine] = Field(default_factory=list)
    bench: list[BasketballPlayerLine] = Field(default_factory=list)
    dnp: list[BasketballPlayerLine] = Field(default_factory=list)
    totals: BasketballTotals = Field(default_factory=BasketballTotals)

    @property
    def active_players(self) -> list[BasketballPlayerLine]:
        return [*self.starters, *self.bench]


class BasketballBoxScore(BaseModel):
    sport: Literal["basketball"] = "basketball"
    game_id: str
    league: str
    home: BasketballTeamBox
    away: BasketballTeamBox


# ---------------------------------------------------------------------------
# Football
# ---------------------------------------------------------------------------


class FootballRow(BaseModel):
    id: str
    name: str
    position: str | None = None
    stats: dict[str, str] = Field(default_factory=dict)  # label -> display value, "-" if missing


class FootballGroup(BaseModel):
    name: str  # "passing", "rushing", ...
    label: str | None = None
    headers: list[str] = Field(default_factory=list)
    rows: list[FootballRow] = Field(default_factory=list)


class FootballTeamBox(BaseModel):
    team: TeamRef
    is_home: bool
    groups: list[FootballGroup] = Field(default_factory=list)


class FootballBoxScore(BaseModel):
    sport: Literal["football"] = "football"
    game_id: str
    league: str
    home: FootballTeamBox
    away: FootballTeamBox


# ---------------------------------------------------------------------------
# Hockey
# ---------------------------------------------------------------------------


class SkaterLine(BaseModel):
    id: str
    name: str
    jersey: str | None = None
    position: str | None = None  # C, LW, RW, D
    goals: int = 0
    assists: int = 0
    points: int = 0
    plus_minus: int = 0
    pim: int = 0
    shots: int = 0
    hits: int = 0
    blocks: int = 0
    faceoff_wins: int = 0
    faceoff_losses: int = 0
    toi_seconds: int = 0
    ppg: int = 0
    shg: int = 0
    ppa: int = 0
    sha: int = 0
    shifts: int = 0


class GoalieLine(BaseModel):
    id: str
    name: str
    jersey: str | None = None
    saves: int = 0
    shots_against: int = 0
    goals_against: int = 0
    save_pct: float = 0.0
    toi_seconds: int = 0
    even_saves: int = 0
    pp_saves: int = 0
    sh_saves: int = 0
    even_shots_against: int = 0
    pp_shots_against: int = 0
    sh_shots_against: int = 0
    decision: str | None = None  # W, L, OTL


class HockeyTotals(BaseModel):
    goals: int = 0
    assists: int = 0
    points: int = 0
    shots: int = 0
    hits: int = 0
    blocks: int = 0
    pim: int = 0
    faceoff_wins: int = 0
    faceoff_losses: int = 0
    ppg: int = 0
    shg: int = 0


class HockeyTeamBox(BaseModel):
    team: TeamRef
    is_home: bool
    skaters: list[SkaterLine] = Field(default_factory=list)
    goalies: list[GoalieLine] = Field(default_factory=list)
    totals: HockeyTotals = Field(default_factory=HockeyTotals)


class HockeyBoxScore(BaseModel):
    sport: Literal["hockey"] = "hockey"
    game_id: str
    league: str
    home: HockeyTeamBox
    away: HockeyTeamBox


# ---------------------------------------------------------------------------
# Golf
# ---------------------------------------------------------------------------


class GolferLine(BaseModel):
    id: str
    name: str
    country: str | None = None
    position: int | None = None
    position_display: str | None = None  # "T3"
    score_display: str = "E"
    to_par_total: int = 0
    thru: str | None = None
    today: str | None = None
    rounds: list[int | None] = Field(default_factory=list)


class Tournament(BaseModel):
    id: str
    provider_event_id: str
    league: str
    name: str
    start_date: date | None = None
    end_date: date | None = None
    venue: str | None = None
    status: GameStatus
    current_round: int | None = None
    round_status: RoundStatus = "Scheduled"
    winner: str | None = None
    leaderboard: list[GolferLine] = Field(default_factory=list)


class GolfBoxScore(BaseModel):
    sport: Literal["golf"] = "golf"
    game_id: str
    league: str
    tournament: Tournament


BoxScore = Annotated[
    Union[BasketballBoxScore, FootballBoxScore, HockeyBoxScore, GolfBoxScore],
    Field(discriminator="sport"),
]


class BoxScoreResult(BaseModel):
    """A transformed box score plus its game header.

    Golf events have no home/away header, so ``game`` is None and status
    comes from the tournament.
    """

    game: CanonicalGame | None = None
    box_score: BoxScore

    @property
    def game_id(self) -> str:
        return self.box_score.game_id

    @property
    def league(self) -> str:
        return self.box_score.league

    @property
    def status(self) -> GameStatus:
        if self.game is not None:
            return self.game.status
        if isinstance(self.box_score, GolfBoxScore):
            return self.box_score.tournament.status
        return "scheduled"


# ---------------------------------------------------------------------------
# Players and seasons
# ---------------------------------------------------------------------------


class PlayerBio(BaseModel):
    external_id: str
    display_name: str
    first_name: str | None = None
    last_name: str | None = None
    jersey: str | None = None
    position: str | None = None
    team_abbreviation: str | None = None
    team_name: str | None = None
    headshot_url: str | None = None
    college: str | None = None
    draft_year: int | None = None
    draft_round: int | None = None
    draft_pick: int | None = None
    draft_summary: str | None = None


class SeasonRow(BaseModel):
    season: int | None = None  # start year; None for career
    season_label: str  # "2024-25" or "Career"
    team_abbreviation: str | None = None  # None for TOTAL and career rows
    games_played: int = 0
    games_started: int = 0

    # Per-game figures
    ppg: float = 0.0
    rpg: float = 0.0
    apg: float = 0.0
    spg: float = 0.0
    bpg: float = 0.0
    mpg: float = 0.0

    # 0-100 scale
    fg_pct: float = 0.0
    fg3_pct: float = 0.0
    ft_pct: float = 0.0

    # Underlying totals, required for weighted career figures
    fgm: int = 0
    fga: int = 0
    fg3m: int = 0
    fg3a: int = 0
    ftm: int = 0
    fta: int = 0

    source: Literal["historical", "provider", "computed"] = "historical"

    @property
    def is_total(self) -> bool:
        return self.team_abbreviation is None


class AthleteSeasonAverages(BaseModel):
    seasons: list[SeasonRow] = Field(default_factory=list)
    career: SeasonRow | None = None


class StatCentral(BaseModel):
    player_id: str
    league: str = "NBA"
    bio: PlayerBio
    seasons: list[SeasonRow] = Field(default_factory=list)  # most recent first
    career: SeasonRow
    degraded: bool = False
    generated_at: datetime


class ExtractedPlayerLine(BaseModel):
    """One athlete's game derived from a basketball box score."""

    bio: PlayerBio
    league: str
    game_id: str
    provider_event_id: str
    game_date: datetime | None = None
    team_abbreviation: str
    opponent_abbreviation: str
    is_home: bool
    line: BasketballPlayerLine
    dnp_reason: str | None = None
