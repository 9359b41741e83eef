"""
Typed settings for the stat gateway.

Uses Pydantic Settings to load configuration from environment variables
with validation and type safety. Local development reads the repo-root
.env file; containers receive variables directly.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .validate_env import validate_env


class ProviderConfig(BaseModel):
    site_base_url: str = Field(default="https://site.api.espn.com/apis/site/v2/sports")
    web_base_url: str = Field(default="https://site.web.api.espn.com/apis/site/v2/sports")
    athlete_base_url: str = Field(default="https://site.web.api.espn.com/apis/common/v3/sports")
    request_timeout_seconds: float = 15.0
    user_agent: str = "stat-gateway/1.0"


class BucketLimits(BaseModel):
    per_minute: int
    daily: int
    protected: bool = False


def _default_buckets() -> dict[str, BucketLimits]:
    return {
        "scoreboard": BucketLimits(per_minute=30, daily=300, protected=True),
        "game_summary": BucketLimits(per_minute=40, daily=600, protected=True),
        "athlete": BucketLimits(per_minute=20, daily=400, protected=False),
        "standings": BucketLimits(per_minute=5, daily=1, protected=True),
        "reserve": BucketLimits(per_minute=10, daily=1099, protected=False),
    }


class BackoffConfig(BaseModel):
    # Seconds; keys are "429", "403", "timeout", "5xx", "consecutive"
    initial_seconds: dict[str, int] = Field(
        default_factory=lambda: {
            "429": 30,
            "403": 60,
            "timeout": 15,
            "5xx": 30,
            "consecutive": 60,
        }
    )
    max_seconds: dict[str, int] = Field(
        default_factory=lambda: {
            "429": 300,
            "403": 600,
            "timeout": 120,
            "5xx": 300,
            "consecutive": 600,
        }
    )
    consecutive_error_threshold: int = 3
    successes_to_halve: int = 5
    full_reset_after_seconds: int = 600


class QuotaConfig(BaseModel):
    global_per_minute: int = 60
    window_seconds: int = 60
    daily_soft_cap: int = 2000
    daily_hard_cap: int = 2200
    warning_threshold: int = 1800
    buckets: dict[str, BucketLimits] = Field(default_factory=_default_buckets)
    backoff: BackoffConfig = Field(default_factory=BackoffConfig)


class CacheConfig(BaseModel):
    live_scoreboard_ttl_seconds: int = 60
    scheduled_today_ttl_seconds: int = 300
    final_same_day_ttl_seconds: int = 6 * 3600
    historical_ttl_seconds: int = 24 * 3600
    live_boxscore_ttl_seconds: int = 90
    final_same_day_boxscore_ttl_seconds: int = 6 * 3600
    final_boxscore_ttl_seconds: int = 7 * 24 * 3600
    key_prefix: str = "stat-gateway"


class BackfillConfig(BaseModel):
    # Games per missing-log backfill invocation
    batch_limit: int = 25
    # Concurrent provider fetches during preload/backfill (quota policy)
    concurrency: int = 3
    inter_batch_delay_seconds: float = 0.5
    recompute_workers: int = 2
    dedup_window_seconds: float = 30.0


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Nested blocks carry tunables that rarely change per deploy; the
    top-level aliased fields are the ones operators actually set.
    """
    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parents[1] / ".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="allow",
    )

    database_url: str = Field(..., alias="DATABASE_URL")

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_async_to_sync(cls, v: str) -> str:
        """Rewrite an asyncpg URL to psycopg; workers use sync SQLAlchemy."""
        if isinstance(v, str) and "asyncpg" in v:
            return v.replace("asyncpg", "psycopg")
        return v

    redis_url: str = Field("redis://localhost:6379/2", alias="REDIS_URL")
    environment: str = Field("development", alias="ENVIRONMENT")
    log_level: str | None = Field(None, alias="LOG_LEVEL")
    provider_user_agent: str | None = Field(None, alias="PROVIDER_USER_AGENT")
    min_players_overrides_raw: str | None = Field(None, alias="MIN_PLAYERS_OVERRIDES")

    provider_config: ProviderConfig = Field(default_factory=ProviderConfig)
    quota_config: QuotaConfig = Field(default_factory=QuotaConfig)
    cache_config: CacheConfig = Field(default_factory=CacheConfig)
    backfill_config: BackfillConfig = Field(default_factory=BackfillConfig)

    @model_validator(mode="after")
    def _apply_overrides(self) -> Settings:
        """Fold flat env overrides into the nested config blocks."""
        if self.provider_user_agent:
            self.provider_config.user_agent = self.provider_user_agent
        return self

    @property
    def min_players_overrides(self) -> dict[str, int]:
        """Per-league guard thresholds parsed from ``NBA=6,NHL=8``."""
        parsed: dict[str, int] = {}
        for chunk in (self.min_players_overrides_raw or "").split(","):
            league, _, value = chunk.strip().partition("=")
            if league and value.strip().isdigit():
                parsed[league.strip().upper()] = int(value)
        return parsed


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Environment variables don't change during runtime, so parsing once
    per process is enough.
    """
    validate_env()
    return Settings()


# Global settings instance - import this in other modules
settings = get_settings()
