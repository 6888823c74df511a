"""Leaderboard computation from raw attempts."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from operator import attrgetter
from typing import Callable, Collection, Dict, Iterable, List, Optional

from ..core.time import ensure_utc, utcnow
from .aggregation import SubjectSummary
from .errors import RankingAborted

WPM_WEIGHT = 0.7
ACCURACY_WEIGHT = 0.3
_WPM_WEIGHT = Decimal(repr(WPM_WEIGHT))
_ACCURACY_WEIGHT = Decimal(repr(ACCURACY_WEIGHT))

# How many samples to fold between deadline checks.
_DEADLINE_STRIDE = 1024


class Period(str, Enum):
    GLOBAL = "global"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def days(self) -> Optional[int]:
        return {"global": None, "weekly": 7, "monthly": 30}[self.value]


@dataclass(frozen=True)
class ResultSample:
    """The columns of a stored attempt that ranking needs."""

    user_id: int
    test_id: int
    wpm: float
    accuracy: float
    duration: int
    created_at: datetime


BY_USER: Callable[[ResultSample], int] = attrgetter("user_id")
BY_TEST: Callable[[ResultSample], int] = attrgetter("test_id")


@dataclass
class LeaderboardEntry:
    subject_id: int
    best_wpm: float
    best_accuracy: float
    average_wpm: float
    average_accuracy: float
    total_tests: int
    total_time_typed: int
    score: float
    rank: int = 0

    def as_summary(self) -> SubjectSummary:
        return SubjectSummary(
            total_tests=self.total_tests,
            average_wpm=self.average_wpm,
            average_accuracy=self.average_accuracy,
            best_wpm=self.best_wpm,
            best_accuracy=self.best_accuracy,
            total_time_typed=self.total_time_typed,
        )


@dataclass(frozen=True)
class RankPosition:
    rank: int
    total: int
    entry: LeaderboardEntry


@dataclass
class _Group:
    count: int = 0
    wpm_sum: float = 0.0
    accuracy_sum: float = 0.0
    best_wpm: float = field(default=float("-inf"))
    best_accuracy: float = field(default=float("-inf"))
    time_sum: int = 0

    def add(self, sample: ResultSample) -> None:
        self.count += 1
        self.wpm_sum += sample.wpm
        self.accuracy_sum += sample.accuracy
        self.best_wpm = max(self.best_wpm, sample.wpm)
        self.best_accuracy = max(self.best_accuracy, sample.accuracy)
        self.time_sum += sample.duration


def window_start(period: Period, now: Optional[datetime] = None) -> Optional[datetime]:
    """Inclusive lower bound on ``created_at`` for a period, None when unbounded."""

    if period.days is None:
        return None
    return (now or utcnow()) - timedelta(days=period.days)


def _exact(value: float) -> Decimal:
    return Decimal(repr(float(value)))


def composite_score(best_wpm: float, best_accuracy: float) -> float:
    """Weighted score, summed in decimal so equal scores compare equal."""

    score = _WPM_WEIGHT * _exact(best_wpm) + _ACCURACY_WEIGHT * _exact(best_accuracy)
    return float(score)


def _sort_key(entry: LeaderboardEntry):
    # Higher score, then speed, then accuracy; subject id settles exact ties.
    return (-entry.score, -entry.best_wpm, -entry.best_accuracy, entry.subject_id)


def aggregate_samples(
    samples: Iterable[ResultSample],
    *,
    since: Optional[datetime] = None,
    test_ids: Optional[Collection[int]] = None,
    key: Callable[[ResultSample], int] = BY_USER,
    deadline: Optional[float] = None,
) -> Dict[int, LeaderboardEntry]:
    """Filter samples and build one unranked entry per subject ``key`` picks."""

    lower = ensure_utc(since) if since is not None else None
    groups: Dict[int, _Group] = {}

    for index, sample in enumerate(samples):
        if (
            deadline is not None
            and index % _DEADLINE_STRIDE == 0
            and time.monotonic() > deadline
        ):
            raise RankingAborted(f"leaderboard scan passed its deadline after {index} results")
        if lower is not None and ensure_utc(sample.created_at) < lower:
            continue
        if test_ids is not None and sample.test_id not in test_ids:
            continue
        groups.setdefault(key(sample), _Group()).add(sample)

    return {
        subject_id: LeaderboardEntry(
            subject_id=subject_id,
            best_wpm=group.best_wpm,
            best_accuracy=group.best_accuracy,
            average_wpm=group.wpm_sum / group.count,
            average_accuracy=group.accuracy_sum / group.count,
            total_tests=group.count,
            total_time_typed=group.time_sum,
            score=composite_score(group.best_wpm, group.best_accuracy),
        )
        for subject_id, group in groups.items()
    }


def rank_samples(
    samples: Iterable[ResultSample],
    *,
    since: Optional[datetime] = None,
    test_ids: Optional[Collection[int]] = None,
    limit: Optional[int] = None,
    deadline: Optional[float] = None,
) -> List[LeaderboardEntry]:
    """Rank users by composite score over the matching samples.

    Ranks are assigned over the complete ordering before ``limit`` cuts the
    list, so rank 1 is always the overall leader of the window.
    """

    entries = sorted(
        aggregate_samples(
            samples, since=since, test_ids=test_ids, deadline=deadline
        ).values(),
        key=_sort_key,
    )
    for position, entry in enumerate(entries, start=1):
        entry.rank = position

    if limit is not None:
        return entries[: max(limit, 0)]
    return entries


def lookup_rank(
    user_id: int,
    samples: Iterable[ResultSample],
    *,
    deadline: Optional[float] = None,
) -> Optional[RankPosition]:
    """Position of ``user_id`` in the all-time, unfiltered ranking.

    Returns None when the user has no results at all.
    """

    entries = rank_samples(samples, deadline=deadline)
    for entry in entries:
        if entry.subject_id == user_id:
            return RankPosition(rank=entry.rank, total=len(entries), entry=entry)
    return None


__all__ = [
    "ACCURACY_WEIGHT",
    "BY_TEST",
    "BY_USER",
    "LeaderboardEntry",
    "Period",
    "RankPosition",
    "ResultSample",
    "WPM_WEIGHT",
    "aggregate_samples",
    "composite_score",
    "lookup_rank",
    "rank_samples",
    "window_start",
]
