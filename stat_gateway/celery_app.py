"""Celery app configuration for the stat gateway."""

from __future__ import annotations

from celery import Celery, signals
from celery.schedules import crontab

from .config import settings
from .logging import logger

QUEUE = "stat-gateway"

celery_config = {
    "task_serializer": "json",
    "accept_content": ["json"],
    "result_serializer": "json",
    "timezone": "UTC",
    "enable_utc": True,
    "task_track_started": True,
    "worker_prefetch_multiplier": 1,
    "task_time_limit": 3600,
    "task_soft_time_limit": 3300,
    "task_default_queue": QUEUE,
}

app = Celery(
    "stat-gateway",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["stat_gateway.jobs.player_tasks"],
)
app.conf.update(**celery_config)
app.conf.task_routes = {
    "ingest_players_for_game": {"queue": QUEUE, "routing_key": QUEUE},
    "ingest_players_for_date": {"queue": QUEUE, "routing_key": QUEUE},
    "backfill_missing_game_logs": {"queue": QUEUE, "routing_key": QUEUE},
    "backfill_player_seasons": {"queue": QUEUE, "routing_key": QUEUE},
}
# Yesterday's finals are recorded at 5:00 AM EST (10:00 UTC), one league
# at a time. The missing-log backfill sweeps up failures every hour at :30.
# Historical seasons are refreshed nightly before the morning ingestion.
app.conf.beat_schedule = {
    "ingest-nba-players-5am-eastern": {
        "task": "ingest_players_for_date",
        "schedule": crontab(minute=0, hour=10),
        "args": ("NBA",),
        "options": {"queue": QUEUE, "routing_key": QUEUE},
    },
    "ingest-ncaam-players-515am-eastern": {
        "task": "ingest_players_for_date",
        "schedule": crontab(minute=15, hour=10),
        "args": ("NCAAM",),
        "options": {"queue": QUEUE, "routing_key": QUEUE},
    },
    "backfill-missing-game-logs-hourly": {
        "task": "backfill_missing_game_logs",
        "schedule": crontab(minute=30),
        "options": {"queue": QUEUE, "routing_key": QUEUE},
    },
    "backfill-player-seasons-nightly": {
        "task": "backfill_player_seasons",
        "schedule": crontab(minute=0, hour=8),  # 3:00 AM EST
        "options": {"queue": QUEUE, "routing_key": QUEUE},
    },
}


@signals.worker_ready.connect
def on_worker_ready(sender=None, **kwargs):
    """Called when the Celery worker is ready."""
    worker_name = getattr(sender, "hostname", None) or (str(sender) if sender else "unknown")
    logger.info("celery_worker_ready", worker=worker_name)


@signals.worker_shutting_down.connect
def on_worker_shutting_down(sender=None, **kwargs):
    """Called when the Celery worker is shutting down."""
    logger.info("celery_worker_shutting_down", worker=str(sender) if sender else "unknown")
