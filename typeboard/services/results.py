"""Submission, history and analytics for typing results."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlmodel import Session, func, select

from ..core.time import ensure_utc, isoformat_z, utcnow
from ..models import TypingResult, TypingTest, User
from ..schemas import ResultSubmission
from .errors import ConcurrentUpdateConflict, InconsistentInput, NotFound
from .metrics import normalize_counters, round2
from .summaries import update_summary

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("created_at", "wpm", "accuracy", "duration")


def submit_result(
    session: Session, payload: ResultSubmission
) -> Union[TypingResult, NotFound, InconsistentInput]:
    """Normalize and store an attempt, then fold it into both summaries.

    The result row and both summary updates are committed together.
    """

    user = session.get(User, payload.user_id)
    if user is None or not user.is_active:
        return NotFound("User")
    test = session.get(TypingTest, payload.test_id)
    if test is None:
        return NotFound("Test")

    counters = normalize_counters(
        characters_typed=payload.characters_typed,
        correct_characters=payload.correct_characters,
        incorrect_characters=payload.incorrect_characters,
        accuracy=payload.accuracy,
        words_typed=payload.words_typed,
    )
    if not counters.consistent:
        logger.warning(
            "Rejected result from user %s on test %s: %s",
            payload.user_id,
            payload.test_id,
            counters.issue,
        )
        return InconsistentInput(counters.issue or "inconsistent counters")
    if counters.characters_typed != payload.characters_typed:
        logger.debug(
            "Corrected characters_typed %s -> %s for user %s",
            payload.characters_typed,
            counters.characters_typed,
            payload.user_id,
        )

    end_time = payload.end_time or utcnow()
    start_time = payload.start_time or end_time - timedelta(seconds=payload.duration)

    result = TypingResult(
        user_id=payload.user_id,
        test_id=payload.test_id,
        wpm=payload.wpm,
        accuracy=counters.accuracy,
        duration=payload.duration,
        words_typed=counters.words_typed,
        characters_typed=counters.characters_typed,
        correct_characters=counters.correct_characters,
        incorrect_characters=counters.incorrect_characters,
        errors_json=json.dumps([error.model_dump() for error in payload.errors]),
        keystrokes_json=json.dumps([stroke.model_dump() for stroke in payload.keystrokes]),
        start_time=start_time,
        end_time=end_time,
    )
    session.add(result)

    try:
        update_summary(session, User, payload.user_id, result)
        update_summary(session, TypingTest, payload.test_id, result)
    except ConcurrentUpdateConflict:
        session.rollback()
        raise
    session.commit()
    session.refresh(result)

    logger.info(
        "Stored result %s: user %s test %s wpm=%s accuracy=%s",
        result.id,
        result.user_id,
        result.test_id,
        result.wpm,
        result.accuracy,
    )
    return result


def get_owned_result(
    session: Session, user_id: int, result_id: int
) -> Optional[TypingResult]:
    result = session.get(TypingResult, result_id)
    if result is None or result.user_id != user_id:
        return None
    return result


def delete_result(session: Session, user_id: int, result_id: int) -> bool:
    """Delete one of the user's results.

    Summaries keep counting the deleted attempt; they only ever grow.
    """

    result = get_owned_result(session, user_id, result_id)
    if result is None:
        return False
    session.delete(result)
    session.commit()
    logger.info("Deleted result %s of user %s", result_id, user_id)
    return True


def list_results(
    session: Session,
    user_id: int,
    *,
    page: int = 1,
    limit: int = 20,
    test_id: Optional[int] = None,
    difficulty: Optional[str] = None,
    category: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> Tuple[List[Tuple[TypingResult, TypingTest]], int]:
    """One page of a user's results with their tests, plus the match count."""

    conditions = [TypingResult.user_id == user_id]
    if test_id is not None:
        conditions.append(TypingResult.test_id == test_id)
    if difficulty is not None:
        conditions.append(TypingTest.difficulty == difficulty)
    if category is not None:
        conditions.append(TypingTest.category == category)

    total = session.exec(
        select(func.count(TypingResult.id))
        .join(TypingTest, TypingTest.id == TypingResult.test_id)
        .where(*conditions)
    ).one()

    column = getattr(TypingResult, sort_by if sort_by in SORTABLE_FIELDS else "created_at")
    order = column.asc() if sort_order == "asc" else column.desc()
    rows = session.exec(
        select(TypingResult, TypingTest)
        .join(TypingTest, TypingTest.id == TypingResult.test_id)
        .where(*conditions)
        .order_by(order, TypingResult.id.desc())
        .offset((max(page, 1) - 1) * limit)
        .limit(limit)
    ).all()
    return list(rows), total


def best_results(
    session: Session, user_id: int, limit: int = 10
) -> List[Tuple[TypingResult, TypingTest]]:
    statement = (
        select(TypingResult, TypingTest)
        .join(TypingTest, TypingTest.id == TypingResult.test_id)
        .where(TypingResult.user_id == user_id)
        .order_by(TypingResult.wpm.desc(), TypingResult.accuracy.desc())
        .limit(limit)
    )
    return list(session.exec(statement).all())


def _since(days: int, now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) - timedelta(days=days)


def analytics_summary(
    session: Session, user_id: int, days: int = 30, now: Optional[datetime] = None
) -> Dict[str, Any]:
    """Totals, averages and bests over the user's last ``days`` days."""

    row = session.exec(
        select(
            func.count(TypingResult.id),
            func.avg(TypingResult.wpm),
            func.avg(TypingResult.accuracy),
            func.max(TypingResult.wpm),
            func.max(TypingResult.accuracy),
            func.sum(TypingResult.duration),
            func.sum(TypingResult.words_typed),
            func.sum(TypingResult.characters_typed),
        ).where(
            TypingResult.user_id == user_id,
            TypingResult.created_at >= _since(days, now),
        )
    ).one()

    count, avg_wpm, avg_accuracy, best_wpm, best_accuracy, time_sum, words, chars = row
    if not count:
        return {
            "total_tests": 0,
            "average_wpm": 0,
            "average_accuracy": 0,
            "best_wpm": 0,
            "best_accuracy": 0,
            "total_time_typed": 0,
            "total_words_typed": 0,
            "total_characters_typed": 0,
        }
    return {
        "total_tests": count,
        "average_wpm": round2(avg_wpm),
        "average_accuracy": round2(avg_accuracy),
        "best_wpm": round2(best_wpm),
        "best_accuracy": round2(best_accuracy),
        "total_time_typed": int(time_sum or 0),
        "total_words_typed": int(words or 0),
        "total_characters_typed": int(chars or 0),
    }


def daily_progress(
    session: Session, user_id: int, days: int = 30, now: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """Per-UTC-day averages and bests, oldest day first."""

    rows = session.exec(
        select(TypingResult.created_at, TypingResult.wpm, TypingResult.accuracy).where(
            TypingResult.user_id == user_id,
            TypingResult.created_at >= _since(days, now),
        )
    ).all()

    buckets: Dict[str, List[Tuple[float, float]]] = {}
    for created_at, wpm, accuracy in rows:
        day = ensure_utc(created_at).date().isoformat()
        buckets.setdefault(day, []).append((wpm, accuracy))

    progress: List[Dict[str, Any]] = []
    for day in sorted(buckets):
        values = buckets[day]
        speeds = [wpm for wpm, _ in values]
        accuracies = [accuracy for _, accuracy in values]
        progress.append(
            {
                "date": day,
                "test_count": len(values),
                "average_wpm": round2(sum(speeds) / len(speeds)),
                "average_accuracy": round2(sum(accuracies) / len(accuracies)),
                "best_wpm": round2(max(speeds)),
                "best_accuracy": round2(max(accuracies)),
            }
        )
    return progress


def result_to_dict(
    result: TypingResult,
    test: Optional[TypingTest] = None,
    *,
    include_detail: bool = False,
) -> Dict[str, Any]:
    """Serialise a result (and optionally its test summary) for the API."""

    data: Dict[str, Any] = {
        "id": result.id,
        "user_id": result.user_id,
        "test_id": result.test_id,
        "wpm": result.wpm,
        "accuracy": result.accuracy,
        "duration": result.duration,
        "words_typed": result.words_typed,
        "characters_typed": result.characters_typed,
        "correct_characters": result.correct_characters,
        "incorrect_characters": result.incorrect_characters,
        "completed": result.completed,
        "start_time": isoformat_z(result.start_time),
        "end_time": isoformat_z(result.end_time),
        "created_at": isoformat_z(result.created_at),
    }
    if test is not None:
        data["test"] = {
            "id": test.id,
            "title": test.title,
            "difficulty": test.difficulty,
            "category": test.category,
            "duration": test.duration,
        }
    if include_detail:
        data["errors"] = json.loads(result.errors_json or "[]")
        data["keystrokes"] = json.loads(result.keystrokes_json or "[]")
    return data


__all__ = [
    "SORTABLE_FIELDS",
    "analytics_summary",
    "best_results",
    "daily_progress",
    "delete_result",
    "get_owned_result",
    "list_results",
    "result_to_dict",
    "submit_result",
]
