"""Running summaries per subject (user or typing test)."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Protocol

from ..models import SubjectStats
from .metrics import round2

# Largest error a single round2 step can introduce into an average.
_STEP_ERROR = 0.005


class Attempt(Protocol):
    wpm: float
    accuracy: float
    duration: int


@dataclass(frozen=True)
class SubjectSummary:
    total_tests: int = 0
    average_wpm: float = 0.0
    average_accuracy: float = 0.0
    best_wpm: float = 0.0
    best_accuracy: float = 0.0
    total_time_typed: int = 0


EMPTY_SUMMARY = SubjectSummary()


def apply_event(summary: SubjectSummary, event: Attempt) -> SubjectSummary:
    """Fold one attempt into a summary in constant time.

    Averages are weighted running means rounded to two decimals at every
    step, so they drift slightly from the exact mean (see ``drift_bound``).
    """

    count = summary.total_tests + 1
    return SubjectSummary(
        total_tests=count,
        average_wpm=round2(
            (summary.average_wpm * summary.total_tests + event.wpm) / count
        ),
        average_accuracy=round2(
            (summary.average_accuracy * summary.total_tests + event.accuracy) / count
        ),
        best_wpm=max(summary.best_wpm, event.wpm),
        best_accuracy=max(summary.best_accuracy, event.accuracy),
        total_time_typed=summary.total_time_typed + event.duration,
    )


def summary_from_stats(stats: SubjectStats) -> SubjectSummary:
    return SubjectSummary(
        total_tests=stats.total_tests,
        average_wpm=stats.average_wpm,
        average_accuracy=stats.average_accuracy,
        best_wpm=stats.best_wpm,
        best_accuracy=stats.best_accuracy,
        total_time_typed=stats.total_time_typed,
    )


def summary_to_dict(summary: SubjectSummary) -> Dict[str, Any]:
    return asdict(summary)


def drift_bound(count: int) -> float:
    """Worst-case gap between a running average and the exact mean.

    After ``n`` steps ``n * err_n == sum(k * r_k)`` with ``|r_k| <= 0.005``,
    hence ``|err_n| <= 0.005 * (n + 1) / 2``.
    """

    if count <= 0:
        return 0.0
    return _STEP_ERROR * (count + 1) / 2


def reconcile(
    cached: SubjectSummary,
    recomputed: SubjectSummary,
    *,
    tolerance: float = 1e-6,
) -> Dict[str, float]:
    """Return the fields where a cached summary disagrees with a recomputation.

    Counts, bests and time must match exactly (within float tolerance);
    averages may differ by at most ``drift_bound``. An empty dict means the
    two agree. Results deleted after being counted make the cached side
    legitimately larger, so callers decide how to read a mismatch.
    """

    mismatches: Dict[str, float] = {}
    for name in ("total_tests", "best_wpm", "best_accuracy", "total_time_typed"):
        delta = abs(getattr(cached, name) - getattr(recomputed, name))
        if delta > tolerance * max(1.0, abs(getattr(recomputed, name))):
            mismatches[name] = delta

    allowed = drift_bound(recomputed.total_tests) + tolerance
    for name in ("average_wpm", "average_accuracy"):
        delta = abs(getattr(cached, name) - getattr(recomputed, name))
        if delta > allowed:
            mismatches[name] = delta
    return mismatches


__all__ = [
    "Attempt",
    "EMPTY_SUMMARY",
    "SubjectSummary",
    "apply_event",
    "drift_bound",
    "reconcile",
    "summary_from_stats",
    "summary_to_dict",
]
