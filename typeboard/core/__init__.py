"""Core configuration and infrastructure helpers."""

from .config import (
    ALLOWED_CORS_ORIGINS,
    DATABASE_URL,
    DB_RESET,
    LEADERBOARD_DEFAULT_LIMIT,
    LEADERBOARD_MAX_LIMIT,
    LEADERBOARD_SCAN_TIMEOUT_SEC,
    LOG_LEVEL,
    SUMMARY_UPDATE_RETRIES,
)
from .database import engine, get_session
from .logging import configure_logging
from .time import ensure_utc, isoformat_z, utcnow

__all__ = [
    "ALLOWED_CORS_ORIGINS",
    "DATABASE_URL",
    "DB_RESET",
    "LEADERBOARD_DEFAULT_LIMIT",
    "LEADERBOARD_MAX_LIMIT",
    "LEADERBOARD_SCAN_TIMEOUT_SEC",
    "LOG_LEVEL",
    "SUMMARY_UPDATE_RETRIES",
    "configure_logging",
    "engine",
    "ensure_utc",
    "get_session",
    "isoformat_z",
    "utcnow",
]
