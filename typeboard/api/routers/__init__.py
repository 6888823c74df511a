"""Aggregate API routers."""

from fastapi import APIRouter

from .leaderboard import router as leaderboard_router
from .results import router as results_router
from .system import router as system_router
from .tests import router as tests_router
from .users import router as users_router

ALL_ROUTERS: tuple[APIRouter, ...] = (
    system_router,
    tests_router,
    results_router,
    leaderboard_router,
    users_router,
)

__all__ = ["ALL_ROUTERS"]
