"""
Database helpers for the gateway.

Synchronous SQLAlchemy sessions for Celery tasks, the recompute worker
and the read façade.
"""

from __future__ import annotations

from contextlib import contextmanager
from types import SimpleNamespace
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .config import settings
from .logging import logger
from .persistence.tables import (
    Base,
    BoxScoreSnapshot,
    GatewayGame,
    GatewayPlayer,
    PlayerGameLog,
    PlayerSeasonSummary,
    PlayerSplit,
)

# Unified namespace exposing all ORM models
db_models = SimpleNamespace(
    Base=Base,
    GatewayPlayer=GatewayPlayer,
    GatewayGame=GatewayGame,
    PlayerGameLog=PlayerGameLog,
    PlayerSeasonSummary=PlayerSeasonSummary,
    PlayerSplit=PlayerSplit,
    BoxScoreSnapshot=BoxScoreSnapshot,
)


engine = create_engine(
    settings.database_url,
    future=True,
    pool_pre_ping=True,
)
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    class_=Session
)


@contextmanager
def get_session() -> Iterator[Session]:
    """
    Provide a transactional database session context manager.

    Commits on clean exit, rolls back and re-raises on error, always closes.

    Usage:
        with get_session() as session:
            recompute_season_summary(session, player_id, season)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception as exc:  # pragma: no cover
        session.rollback()
        logger.exception("db_session_rollback", error=str(exc))
        raise
    finally:
        session.close()


__all__ = ["get_session", "db_models", "engine", "SessionLocal"]
