"""Application settings and environment helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List

from dotenv import load_dotenv

load_dotenv(override=False)

_PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    """Return an integer environment variable or raise an error."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer") from exc


def _split_csv(raw: str | None) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


# Storage --------------------------------------------------------------------
DATABASE_URL = os.getenv(
    "DATABASE_URL", f"sqlite:///{_PROJECT_ROOT / 'data' / 'app.db'}"
)
DB_RESET = _env_bool("DB_RESET", False)


# CORS -----------------------------------------------------------------------
# FRONTEND_ORIGIN can contain a comma-separated list for multi-domain deploys.
_frontend_origins = _split_csv(os.getenv("FRONTEND_ORIGIN"))
_additional_origins = _split_csv(os.getenv("ADDITIONAL_ALLOWED_ORIGINS"))

_local_dev_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

ALLOWED_CORS_ORIGINS = _unique(
    [
        *_frontend_origins,
        *_additional_origins,
        *_local_dev_origins,
    ]
)


# Runtime behaviour ----------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LEADERBOARD_DEFAULT_LIMIT = _env_int("LEADERBOARD_DEFAULT_LIMIT", 50)
LEADERBOARD_MAX_LIMIT = _env_int("LEADERBOARD_MAX_LIMIT", 500)
LEADERBOARD_SCAN_TIMEOUT_SEC = _env_int("LEADERBOARD_SCAN_TIMEOUT_SEC", 10)

SUMMARY_UPDATE_RETRIES = _env_int("SUMMARY_UPDATE_RETRIES", 3)


__all__ = [
    "ALLOWED_CORS_ORIGINS",
    "DATABASE_URL",
    "DB_RESET",
    "LEADERBOARD_DEFAULT_LIMIT",
    "LEADERBOARD_MAX_LIMIT",
    "LEADERBOARD_SCAN_TIMEOUT_SEC",
    "LOG_LEVEL",
    "SUMMARY_UPDATE_RETRIES",
]
