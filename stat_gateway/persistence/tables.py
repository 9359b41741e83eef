"""ORM models for the gateway's Postgres tables.

Season summaries hold counting totals only. Per-game figures and
percentages are derived when rows are read, so a recompute never leaves
stale averages behind.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Team value for a player's cross-team season aggregate
TOTAL_TEAM = "TOTAL"


class Base(DeclarativeBase):
    pass


class GatewayPlayer(Base):
    """Players seen in box scores or athlete lookups."""

    __tablename__ = "gateway_players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    provider: Mapped[str] = mapped_column(String(20), nullable=False, default="espn")
    external_id: Mapped[str] = mapped_column(String(100), nullable=False)
    league_code: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    display_name: Mapped[str] = mapped_column(String(200), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    jersey: Mapped[str | None] = mapped_column(String(10), nullable=True)
    position: Mapped[str | None] = mapped_column(String(10), nullable=True)
    current_team: Mapped[str | None] = mapped_column(String(20), nullable=True)
    headshot_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    college: Mapped[str | None] = mapped_column(String(200), nullable=True)
    draft_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    draft_round: Mapped[int | None] = mapped_column(Integer, nullable=True)
    draft_pick: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("provider", "external_id", name="uq_gateway_player_identity"),
        Index("idx_gateway_players_team", "current_team"),
    )


class GatewayGame(Base):
    """Games whose box scores fed player game logs."""

    __tablename__ = "gateway_games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    game_key: Mapped[str] = mapped_column(String(100), nullable=False)  # "nba_401584701"
    provider_event_id: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    league_code: Mapped[str] = mapped_column(String(20), nullable=False)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    game_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")
    home_team: Mapped[str | None] = mapped_column(String(20), nullable=True)
    away_team: Mapped[str | None] = mapped_column(String(20), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_gateway_games_league_date", "league_code", "game_date"),
        Index("idx_gateway_games_status", "status"),
    )


class PlayerGameLog(Base):
    """One player's basketball line in one game."""

    __tablename__ = "player_game_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("gateway_players.id", ondelete="CASCADE"), nullable=False
    )
    game_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("gateway_games.id", ondelete="CASCADE"), nullable=False
    )
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    game_date: Mapped[date] = mapped_column(Date, nullable=False)
    team: Mapped[str | None] = mapped_column(String(20), nullable=True)
    opponent: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_home: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_starter: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    minutes: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fgm: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fga: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fg3m: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fg3a: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ftm: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fta: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    oreb: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dreb: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reb: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ast: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stl: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    blk: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tov: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pf: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    plus_minus: Mapped[int | None] = mapped_column(Integer, nullable=True)
    dnp_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("player_id", "game_id", name="uq_player_game_log"),
        Index("idx_game_logs_player_season", "player_id", "season"),
        Index("idx_game_logs_game", "game_id"),
    )


class PlayerSeasonSummary(Base):
    """Counting totals for one player-season-team (team is TOTAL for the aggregate)."""

    __tablename__ = "player_season_summaries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("gateway_players.id", ondelete="CASCADE"), nullable=False
    )
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    team: Mapped[str] = mapped_column(String(20), nullable=False, default=TOTAL_TEAM)
    games_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    games_started: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    minutes_total: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    points_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fgm: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fga: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fg3m: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fg3a: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ftm: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    fta: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    oreb: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    dreb: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reb: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ast: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stl: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    blk: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tov: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pf: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("player_id", "season", "team", name="uq_player_season_team"),
        Index("idx_season_summaries_player", "player_id"),
    )


class PlayerSplit(Base):
    """Precomputed subset aggregate (home/away, last N, month) for a player-season."""

    __tablename__ = "player_splits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("gateway_players.id", ondelete="CASCADE"), nullable=False
    )
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    split_type: Mapped[str] = mapped_column(String(50), nullable=False)  # HOME_AWAY, LAST_N, BY_MONTH
    split_key: Mapped[str] = mapped_column(String(50), nullable=False)  # HOME, LAST10, OCT
    stats_json: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    games_included: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_game_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("player_id", "season", "split_type", "split_key", name="uq_player_split"),
        Index("idx_player_splits_player_season", "player_id", "season"),
    )


class BoxScoreSnapshot(Base):
    """Final box score payloads that passed the persistence guard."""

    __tablename__ = "boxscore_snapshots"

    game_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    league_code: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    sport: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    populated_players: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    stored_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
