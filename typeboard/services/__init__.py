"""Service layer helpers."""

from .aggregation import SubjectSummary, apply_event, drift_bound, reconcile
from .catalog import MetadataFilter, resolve_test_ids, typing_test_to_dict
from .errors import ConcurrentUpdateConflict, InconsistentInput, NotFound, RankingAborted
from .leaderboards import build_leaderboard, user_rank
from .metrics import normalize_counters, round2
from .ranking import LeaderboardEntry, Period, lookup_rank, rank_samples
from .results import submit_result
from .summaries import read_summary, update_summary

__all__ = [
    "ConcurrentUpdateConflict",
    "InconsistentInput",
    "LeaderboardEntry",
    "MetadataFilter",
    "NotFound",
    "Period",
    "RankingAborted",
    "SubjectSummary",
    "apply_event",
    "build_leaderboard",
    "drift_bound",
    "lookup_rank",
    "normalize_counters",
    "rank_samples",
    "read_summary",
    "reconcile",
    "resolve_test_ids",
    "round2",
    "submit_result",
    "typing_test_to_dict",
    "update_summary",
    "user_rank",
]
