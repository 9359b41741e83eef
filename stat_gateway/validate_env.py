"""Fail-fast environment validation for the gateway worker and read service.

Runs before Settings are parsed so a misconfigured production container
exits at startup instead of failing on the first provider call.
"""

from __future__ import annotations

import os
from functools import lru_cache
from urllib.parse import urlparse

ALLOWED_ENVIRONMENTS = {"development", "staging", "production"}

ALLOWED_GATEWAY_ROLES = {"api", "worker", "beat"}


def require_env(name: str) -> str:
    """Fetch an environment variable or raise RuntimeError if missing."""
    value = os.getenv(name)
    if value is None or not value.strip():
        raise RuntimeError(f"{name} is required and must be set before startup.")
    return value.strip()


def validate_environment_value(environment: str) -> None:
    """Ensure ENVIRONMENT is one of the allowed values."""
    if environment not in ALLOWED_ENVIRONMENTS:
        allowed = ", ".join(sorted(ALLOWED_ENVIRONMENTS))
        raise RuntimeError(f"ENVIRONMENT must be one of: {allowed}.")


def validate_non_local_url(name: str, value: str) -> None:
    """Ensure a URL does not point to localhost in production."""
    parsed = urlparse(value)
    host = parsed.hostname
    if not host:
        raise RuntimeError(f"{name} must be a valid URL (missing hostname).")
    if host in {"localhost", "127.0.0.1"}:
        raise RuntimeError(f"{name} must not point to localhost in production.")


def validate_database_credentials(value: str) -> None:
    """Ensure DATABASE_URL does not use default credentials in production."""
    parsed = urlparse(value)
    if parsed.username == "postgres" and parsed.password == "postgres":
        raise RuntimeError(
            "DATABASE_URL must not use default postgres credentials in production."
        )


def validate_min_players_overrides(raw: str) -> None:
    """Ensure MIN_PLAYERS_OVERRIDES is a comma list of LEAGUE=int pairs."""
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        league, sep, value = chunk.partition("=")
        if not sep or not league.strip() or not value.strip().isdigit():
            raise RuntimeError(
                f"MIN_PLAYERS_OVERRIDES entry '{chunk}' must look like NBA=5."
            )


@lru_cache(maxsize=1)
def validate_env() -> None:
    """Validate required environment variables before the service starts.

    GATEWAY_ROLE only matters in production, where it must be one of
    api / worker / beat so deploy manifests cannot drift silently.
    """
    environment = require_env("ENVIRONMENT")
    validate_environment_value(environment)

    database_url = require_env("DATABASE_URL")
    redis_url = require_env("REDIS_URL")

    overrides = os.getenv("MIN_PLAYERS_OVERRIDES")
    if overrides:
        validate_min_players_overrides(overrides)

    if environment == "production":
        validate_non_local_url("DATABASE_URL", database_url)
        validate_database_credentials(database_url)
        validate_non_local_url("REDIS_URL", redis_url)

        role = os.getenv("GATEWAY_ROLE", "worker")
        if role not in ALLOWED_GATEWAY_ROLES:
            allowed = ", ".join(sorted(ALLOWED_GATEWAY_ROLES))
            raise RuntimeError(f"GATEWAY_ROLE must be one of: {allowed}.")
