"""Leaderboard endpoints."""

from __future__ import annotations

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from ...core import LEADERBOARD_DEFAULT_LIMIT, LEADERBOARD_MAX_LIMIT, get_session
from ...models import TypingTest
from ...services.catalog import MetadataFilter
from ...services.errors import RankingAborted
from ...services.leaderboards import (
    build_leaderboard,
    entries_to_dicts,
    entry_to_dict,
    user_rank,
    usernames,
)
from ...services.ranking import Period

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

Limit = Annotated[int, Query(ge=1, le=LEADERBOARD_MAX_LIMIT)]


def _period_leaderboard(
    session: Session,
    period: Period,
    limit: int,
    difficulty: Optional[str],
    category: Optional[str],
    duration: Optional[int],
) -> Dict[str, Any]:
    metadata_filter = MetadataFilter(
        difficulty=difficulty, category=category, duration=duration
    )
    try:
        entries = build_leaderboard(
            session, period=period, metadata_filter=metadata_filter, limit=limit
        )
    except RankingAborted as exc:
        raise HTTPException(503, str(exc)) from exc
    return {"period": period.value, "leaderboard": entries_to_dicts(session, entries)}


@router.get("/global")
def global_leaderboard(
    limit: Limit = LEADERBOARD_DEFAULT_LIMIT,
    difficulty: Optional[str] = None,
    category: Optional[str] = None,
    duration: Optional[int] = None,
    session: Session = Depends(get_session),
):
    """All-time leaderboard, optionally limited to tests matching metadata."""

    return _period_leaderboard(
        session, Period.GLOBAL, limit, difficulty, category, duration
    )


@router.get("/weekly")
def weekly_leaderboard(
    limit: Limit = LEADERBOARD_DEFAULT_LIMIT,
    difficulty: Optional[str] = None,
    category: Optional[str] = None,
    duration: Optional[int] = None,
    session: Session = Depends(get_session),
):
    """Leaderboard over results from the last 7 days."""

    return _period_leaderboard(
        session, Period.WEEKLY, limit, difficulty, category, duration
    )


@router.get("/monthly")
def monthly_leaderboard(
    limit: Limit = LEADERBOARD_DEFAULT_LIMIT,
    difficulty: Optional[str] = None,
    category: Optional[str] = None,
    duration: Optional[int] = None,
    session: Session = Depends(get_session),
):
    """Leaderboard over results from the last 30 days."""

    return _period_leaderboard(
        session, Period.MONTHLY, limit, difficulty, category, duration
    )


@router.get("/test/{test_id}")
def test_leaderboard(
    test_id: int,
    limit: Limit = LEADERBOARD_DEFAULT_LIMIT,
    period: Period = Period.GLOBAL,
    session: Session = Depends(get_session),
):
    """Leaderboard for a single typing test."""

    test = session.get(TypingTest, test_id)
    if not test:
        raise HTTPException(404, "Test not found")

    try:
        entries = build_leaderboard(
            session, period=period, test_id=test_id, limit=limit
        )
    except RankingAborted as exc:
        raise HTTPException(503, str(exc)) from exc

    return {
        "test": {
            "id": test.id,
            "title": test.title,
            "difficulty": test.difficulty,
            "category": test.category,
        },
        "period": period.value,
        "leaderboard": entries_to_dicts(session, entries),
    }


@router.get("/user-rank/{user_id}")
def get_user_rank(user_id: int, session: Session = Depends(get_session)):
    """Position of a user in the all-time leaderboard."""

    try:
        position = user_rank(session, user_id)
    except RankingAborted as exc:
        raise HTTPException(503, str(exc)) from exc
    if position is None:
        raise HTTPException(404, "User not found in rankings")

    names = usernames(session, [user_id])
    return {
        "rank": position.rank,
        "total_users": position.total,
        "stats": entry_to_dict(position.entry, names.get(user_id)),
    }


__all__ = ["router"]
