from __future__ import annotations

import random
import time
from datetime import datetime, timedelta, timezone

import pytest

from typeboard.services import ranking
from typeboard.services.errors import RankingAborted
from typeboard.services.ranking import (
    BY_TEST,
    Period,
    ResultSample,
    aggregate_samples,
    composite_score,
    lookup_rank,
    rank_samples,
    window_start,
)

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


def sample(user_id, wpm, accuracy, *, test_id=1, duration=60, age_days=0.0):
    return ResultSample(
        user_id=user_id,
        test_id=test_id,
        wpm=wpm,
        accuracy=accuracy,
        duration=duration,
        created_at=NOW - timedelta(days=age_days),
    )


def assert_ordered(entries):
    for upper, lower in zip(entries, entries[1:]):
        assert upper.score >= lower.score
        if upper.score == lower.score:
            assert upper.best_wpm >= lower.best_wpm
            if upper.best_wpm == lower.best_wpm:
                assert upper.best_accuracy >= lower.best_accuracy


def test_score_ties_fall_back_to_speed_accuracy_then_user_id():
    samples = [
        sample(3, 80, 90),
        sample(1, 80, 90),
        sample(2, 70, 98),
    ]

    entries = rank_samples(samples)

    assert [entry.subject_id for entry in entries] == [1, 3, 2]
    assert [entry.rank for entry in entries] == [1, 2, 3]
    assert entries[0].score == pytest.approx(83.0)
    assert entries[1].score == pytest.approx(83.0)
    assert entries[2].score == pytest.approx(78.4)


def test_equal_scores_order_by_speed_then_accuracy(monkeypatch):
    monkeypatch.setattr(ranking, "composite_score", lambda best_wpm, best_accuracy: 50.0)
    samples = [
        sample(1, 60, 99),
        sample(2, 70, 80),
        sample(3, 60, 100),
        sample(4, 60, 99),
    ]

    entries = rank_samples(samples)

    assert [entry.subject_id for entry in entries] == [2, 3, 1, 4]
    assert_ordered(entries)


def test_scores_equal_in_decimal_tie_break_on_speed():
    # 0.7 * 53 + 0.3 * 83 drifts below 62.0 in binary floating point.
    entries = rank_samples([sample(1, 50, 90), sample(2, 53, 83)])

    assert entries[0].score == entries[1].score == 62.0
    assert [entry.subject_id for entry in entries] == [2, 1]
    assert composite_score(53, 83) == composite_score(50, 90)


def test_groups_use_fresh_max_mean_count_and_sum():
    samples = [
        sample(1, 40, 90, duration=30),
        sample(1, 60, 96, duration=60),
        sample(1, 50, 93, duration=15),
    ]

    (entry,) = rank_samples(samples)

    assert entry.best_wpm == 60
    assert entry.best_accuracy == 96
    assert entry.average_wpm == pytest.approx(50.0)
    assert entry.average_accuracy == pytest.approx(93.0)
    assert entry.total_tests == 3
    assert entry.total_time_typed == 105
    assert entry.score == pytest.approx(0.7 * 60 + 0.3 * 96)


def test_window_excludes_older_results_even_when_they_would_lead():
    samples = [
        sample(1, 200, 100, age_days=10),
        sample(2, 55, 97, age_days=2),
        sample(1, 30, 80, age_days=1),
    ]

    since = window_start(Period.WEEKLY, NOW)
    entries = rank_samples(samples, since=since)

    assert [entry.subject_id for entry in entries] == [2, 1]
    assert entries[1].best_wpm == 30


def test_window_lower_bound_is_inclusive():
    since = window_start(Period.MONTHLY, NOW)
    edge = ResultSample(1, 1, 50, 90, 60, since)

    assert [entry.subject_id for entry in rank_samples([edge], since=since)] == [1]


def test_naive_timestamps_are_read_as_utc():
    since = window_start(Period.WEEKLY, NOW)
    naive = ResultSample(1, 1, 50, 90, 60, (NOW - timedelta(days=1)).replace(tzinfo=None))

    assert len(rank_samples([naive], since=since)) == 1


def test_global_period_is_unbounded():
    assert window_start(Period.GLOBAL, NOW) is None
    assert window_start(Period.WEEKLY, NOW) == NOW - timedelta(days=7)
    assert window_start(Period.MONTHLY, NOW) == NOW - timedelta(days=30)


def test_test_id_filter_restricts_samples():
    samples = [
        sample(1, 100, 99, test_id=5),
        sample(2, 50, 90, test_id=6),
    ]

    entries = rank_samples(samples, test_ids={6})

    assert [entry.subject_id for entry in entries] == [2]


def test_empty_filter_set_yields_empty_leaderboard():
    assert rank_samples([sample(1, 50, 90)], test_ids=set()) == []
    assert rank_samples([]) == []


def test_limit_truncates_after_ranking():
    samples = [sample(user_id, 100 - user_id, 90) for user_id in range(1, 8)]

    entries = rank_samples(samples, limit=3)

    assert [entry.rank for entry in entries] == [1, 2, 3]
    assert [entry.subject_id for entry in entries] == [1, 2, 3]


def test_random_leaderboards_are_ordered():
    rng = random.Random(11)
    samples = [
        sample(
            rng.randint(1, 40),
            rng.choice([40, 55.5, 60, 72.25, 80]),
            rng.choice([85, 90, 97.5, 100]),
        )
        for _ in range(400)
    ]

    entries = rank_samples(samples)

    assert_ordered(entries)
    assert [entry.rank for entry in entries] == list(range(1, len(entries) + 1))
    assert rank_samples(list(reversed(samples))) == entries


def test_lookup_rank_matches_leaderboard_position():
    rng = random.Random(3)
    samples = [
        sample(rng.randint(1, 15), rng.uniform(20, 120), rng.uniform(70, 100))
        for _ in range(120)
    ]
    entries = rank_samples(samples)

    for index, entry in enumerate(entries, start=1):
        position = lookup_rank(entry.subject_id, samples)
        assert position is not None
        assert position.rank == index
        assert position.total == len(entries)
        assert position.entry == entry


def test_lookup_rank_ignores_windows():
    samples = [sample(1, 90, 99, age_days=400), sample(2, 50, 90)]

    position = lookup_rank(1, samples)

    assert position is not None
    assert position.rank == 1


def test_lookup_rank_returns_none_without_results():
    assert lookup_rank(99, [sample(1, 50, 90)]) is None
    assert lookup_rank(1, []) is None


def test_grouping_by_test():
    samples = [
        sample(1, 40, 90, test_id=7),
        sample(2, 60, 96, test_id=7),
        sample(2, 80, 99, test_id=8),
    ]

    groups = aggregate_samples(samples, key=BY_TEST)

    assert groups[7].total_tests == 2
    assert groups[7].average_wpm == pytest.approx(50.0)
    assert groups[8].best_wpm == 80


def test_scan_aborts_once_deadline_has_passed():
    with pytest.raises(RankingAborted):
        rank_samples([sample(1, 50, 90)], deadline=time.monotonic() - 1)
