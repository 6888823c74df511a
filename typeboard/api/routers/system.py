"""System-level API endpoints."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ... import __version__
from ...core import (
    LEADERBOARD_DEFAULT_LIMIT,
    LEADERBOARD_MAX_LIMIT,
    SUMMARY_UPDATE_RETRIES,
)
from ...services.catalog import CATEGORIES, DIFFICULTIES
from ...services.ranking import ACCURACY_WEIGHT, WPM_WEIGHT, Period

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> Dict[str, bool]:
    """Simple readiness probe."""

    return {"ok": True}


@router.get("/healthz")
def healthz() -> JSONResponse:
    """Kubernetes-style readiness endpoint."""

    return JSONResponse({"ok": True})


@router.get("/config")
def get_config() -> Dict[str, Any]:
    """Expose frontend configuration values."""

    return {
        "version": __version__,
        "periods": [period.value for period in Period],
        "difficulties": list(DIFFICULTIES),
        "categories": list(CATEGORIES),
        "score_weights": {"wpm": WPM_WEIGHT, "accuracy": ACCURACY_WEIGHT},
        "leaderboard_default_limit": LEADERBOARD_DEFAULT_LIMIT,
        "leaderboard_max_limit": LEADERBOARD_MAX_LIMIT,
        "summary_update_retries": SUMMARY_UPDATE_RETRIES,
    }


__all__ = ["router"]
