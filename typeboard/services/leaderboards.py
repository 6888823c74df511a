"""Leaderboard queries over stored results."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Collection, Dict, Iterable, List, Optional

from sqlmodel import Session, select

from ..core.config import LEADERBOARD_DEFAULT_LIMIT, LEADERBOARD_SCAN_TIMEOUT_SEC
from ..models import TypingResult, User
from .aggregation import EMPTY_SUMMARY, SubjectSummary
from .catalog import MetadataFilter, resolve_test_ids
from .errors import RankingAborted
from .metrics import round2
from .ranking import (
    BY_TEST,
    LeaderboardEntry,
    Period,
    RankPosition,
    ResultSample,
    aggregate_samples,
    lookup_rank,
    rank_samples,
    window_start,
)

logger = logging.getLogger(__name__)


def _deadline() -> Optional[float]:
    if LEADERBOARD_SCAN_TIMEOUT_SEC <= 0:
        return None
    return time.monotonic() + LEADERBOARD_SCAN_TIMEOUT_SEC


def scan_samples(
    session: Session,
    *,
    since: Optional[datetime] = None,
    test_ids: Optional[Collection[int]] = None,
    user_id: Optional[int] = None,
) -> List[ResultSample]:
    """Read the ranking columns of every matching result.

    Results whose user no longer exists are skipped.
    """

    statement = select(
        TypingResult.user_id,
        TypingResult.test_id,
        TypingResult.wpm,
        TypingResult.accuracy,
        TypingResult.duration,
        TypingResult.created_at,
    ).join(User, User.id == TypingResult.user_id)
    if since is not None:
        statement = statement.where(TypingResult.created_at >= since)
    if test_ids is not None:
        statement = statement.where(TypingResult.test_id.in_(list(test_ids)))
    if user_id is not None:
        statement = statement.where(TypingResult.user_id == user_id)

    return [ResultSample(*row) for row in session.exec(statement).all()]


def build_leaderboard(
    session: Session,
    *,
    period: Period = Period.GLOBAL,
    metadata_filter: Optional[MetadataFilter] = None,
    test_id: Optional[int] = None,
    limit: Optional[int] = LEADERBOARD_DEFAULT_LIMIT,
    now: Optional[datetime] = None,
) -> List[LeaderboardEntry]:
    """Rank users from raw results for a period, metadata filter or single test."""

    test_ids = resolve_test_ids(session, metadata_filter or MetadataFilter())
    if test_id is not None:
        test_ids = {test_id} if test_ids is None else test_ids & {test_id}
    if test_ids is not None and not test_ids:
        return []

    since = window_start(period, now)
    try:
        return rank_samples(
            scan_samples(session, since=since, test_ids=test_ids),
            since=since,
            test_ids=test_ids,
            limit=limit,
            deadline=_deadline(),
        )
    except RankingAborted:
        logger.warning("Leaderboard scan aborted (period=%s, test=%s)", period.value, test_id)
        raise


def user_rank(session: Session, user_id: int) -> Optional[RankPosition]:
    """All-time position of a user, None when they have no results."""

    return lookup_rank(user_id, scan_samples(session), deadline=_deadline())


def recompute_user_summary(session: Session, user_id: int) -> SubjectSummary:
    """Summary of a user rebuilt from their stored results."""

    entry = aggregate_samples(scan_samples(session, user_id=user_id)).get(user_id)
    return entry.as_summary() if entry else EMPTY_SUMMARY


def recompute_test_summary(session: Session, test_id: int) -> SubjectSummary:
    """Summary of a typing test rebuilt from the results recorded against it."""

    samples = scan_samples(session, test_ids=[test_id])
    entry = aggregate_samples(samples, key=BY_TEST).get(test_id)
    return entry.as_summary() if entry else EMPTY_SUMMARY


def usernames(session: Session, user_ids: Iterable[int]) -> Dict[int, str]:
    ids = list(set(user_ids))
    if not ids:
        return {}
    rows = session.exec(select(User.id, User.username).where(User.id.in_(ids))).all()
    return {user_id: username for user_id, username in rows}


def entry_to_dict(entry: LeaderboardEntry, username: Optional[str] = None) -> Dict[str, Any]:
    """Serialise a leaderboard entry with display rounding."""

    return {
        "rank": entry.rank,
        "user_id": entry.subject_id,
        "username": username,
        "best_wpm": round2(entry.best_wpm),
        "best_accuracy": round2(entry.best_accuracy),
        "average_wpm": round2(entry.average_wpm),
        "average_accuracy": round2(entry.average_accuracy),
        "total_tests": entry.total_tests,
        "total_time_typed": entry.total_time_typed,
        "score": round2(entry.score),
    }


def entries_to_dicts(session: Session, entries: List[LeaderboardEntry]) -> List[Dict[str, Any]]:
    names = usernames(session, (entry.subject_id for entry in entries))
    return [entry_to_dict(entry, names.get(entry.subject_id)) for entry in entries]


__all__ = [
    "build_leaderboard",
    "entries_to_dicts",
    "entry_to_dict",
    "recompute_test_summary",
    "recompute_user_summary",
    "scan_samples",
    "user_rank",
    "usernames",
]
