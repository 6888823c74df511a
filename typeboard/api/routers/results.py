"""Result submission, history and analytics endpoints."""

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session

from ...core import get_session
from ...models import TypingTest, User
from ...schemas import ResultSubmission
from ...services.errors import ConcurrentUpdateConflict, InconsistentInput, NotFound
from ...services.results import (
    analytics_summary,
    best_results,
    daily_progress,
    delete_result,
    get_owned_result,
    list_results,
    result_to_dict,
    submit_result,
)

router = APIRouter(tags=["results"])


def _require_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(404, "User not found")
    return user


@router.post("/results", status_code=201)
def create_result(payload: ResultSubmission, session: Session = Depends(get_session)):
    """Submit a completed attempt."""

    try:
        outcome = submit_result(session, payload)
    except ConcurrentUpdateConflict as exc:
        raise HTTPException(503, str(exc)) from exc

    if isinstance(outcome, NotFound):
        raise HTTPException(404, outcome.message)
    if isinstance(outcome, InconsistentInput):
        raise HTTPException(422, outcome.reason)

    test = session.get(TypingTest, outcome.test_id)
    return {
        "ok": True,
        "result": result_to_dict(outcome, test, include_detail=True),
    }


@router.get("/users/{user_id}/results")
def get_results(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    test_id: Optional[int] = None,
    difficulty: Optional[str] = None,
    category: Optional[str] = None,
    sort_by: Literal["created_at", "wpm", "accuracy", "duration"] = "created_at",
    sort_order: Literal["asc", "desc"] = "desc",
    session: Session = Depends(get_session),
):
    """Paginated result history of a user."""

    _require_user(session, user_id)
    rows, total = list_results(
        session,
        user_id,
        page=page,
        limit=limit,
        test_id=test_id,
        difficulty=difficulty,
        category=category,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return {
        "results": [result_to_dict(result, test) for result, test in rows],
        "pagination": {
            "current": page,
            "pages": (total + limit - 1) // limit,
            "total": total,
        },
    }


@router.get("/users/{user_id}/results/best")
def get_best_results(
    user_id: int,
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
):
    """A user's fastest results."""

    _require_user(session, user_id)
    rows = best_results(session, user_id, limit)
    return {"results": [result_to_dict(result, test) for result, test in rows]}


@router.get("/users/{user_id}/results/{result_id}")
def get_result(user_id: int, result_id: int, session: Session = Depends(get_session)):
    """A single result, including error and keystroke detail."""

    result = get_owned_result(session, user_id, result_id)
    if not result:
        raise HTTPException(404, "Result not found")
    test = session.get(TypingTest, result.test_id)
    return {"result": result_to_dict(result, test, include_detail=True)}


@router.delete("/users/{user_id}/results/{result_id}")
def remove_result(user_id: int, result_id: int, session: Session = Depends(get_session)):
    """Delete a user's result. Running statistics are left untouched."""

    if not delete_result(session, user_id, result_id):
        raise HTTPException(404, "Result not found")
    return {"ok": True, "deleted_result": result_id}


@router.get("/users/{user_id}/analytics/summary")
def get_analytics_summary(
    user_id: int,
    days: int = Query(30, ge=1, le=3650),
    session: Session = Depends(get_session),
):
    """Totals, averages and bests over the last ``days`` days."""

    _require_user(session, user_id)
    return {"days": days, "summary": analytics_summary(session, user_id, days)}


@router.get("/users/{user_id}/progress")
def get_progress(
    user_id: int,
    days: int = Query(30, ge=1, le=3650),
    session: Session = Depends(get_session),
):
    """Daily averages and bests over the last ``days`` days."""

    _require_user(session, user_id)
    return {"days": days, "progress": daily_progress(session, user_id, days)}


__all__ = ["router"]
