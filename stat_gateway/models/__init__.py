"""Canonical typed models shared across the gateway."""

from .schemas import (
    AthleteSeasonAverages,
    BasketballBoxScore,
    BasketballPlayerLine,
    BasketballTeamBox,
    BasketballTotals,
    BoxScore,
    BoxScoreResult,
    CanonicalGame,
    ExtractedPlayerLine,
    FootballBoxScore,
    FootballGroup,
    FootballRow,
    FootballTeamBox,
    GameStatus,
    GoalieLine,
    GolfBoxScore,
    GolferLine,
    HockeyBoxScore,
    HockeyTeamBox,
    HockeyTotals,
    PlayerBio,
    SeasonRow,
    SkaterLine,
    StatCentral,
    TeamRef,
    Tournament,
    Venue,
)

__all__ = [
    "GameStatus",
    "TeamRef",
    "Venue",
    "CanonicalGame",
    "BasketballPlayerLine",
    "BasketballTotals",
    "BasketballTeamBox",
    "BasketballBoxScore",
    "FootballRow",
    "FootballGroup",
    "FootballTeamBox",
    "FootballBoxScore",
    "SkaterLine",
    "GoalieLine",
    "HockeyTotals",
    "HockeyTeamBox",
    "HockeyBoxScore",
    "GolferLine",
    "Tournament",
    "GolfBoxScore",
    "BoxScore",
    "BoxScoreResult",
    "PlayerBio",
    "SeasonRow",
    "AthleteSeasonAverages",
    "StatCentral",
    "ExtractedPlayerLine",
]
