"""
Centralized structlog configuration for the stat gateway.

All logs are JSON on stdout with service and environment context so
they can be filtered per deploy.
"""

from __future__ import annotations

import logging

import structlog

from .config import settings


def _normalize_log_level(level: str | None, environment: str) -> int:
    env = environment.lower()
    if level:
        normalized = level.strip().upper()
    else:
        normalized = "INFO" if env == "production" else "DEBUG"
    return logging.getLevelNamesMapping().get(normalized, logging.INFO)


def configure_logging() -> None:
    """Configure structlog with JSON output."""
    resolved_level = _normalize_log_level(settings.log_level, settings.environment)
    logging.basicConfig(level=resolved_level)
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.EventRenamer("message"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolved_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


# Configure logging at module import time
configure_logging()

# Global logger instance with service context
logger = structlog.get_logger("stat-gateway").bind(
    service="stat-gateway",
    environment=settings.environment,
)
