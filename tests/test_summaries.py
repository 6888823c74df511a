from __future__ import annotations

from types import SimpleNamespace

import pytest
from sqlalchemy import update

from typeboard.models import TypingTest, User
from typeboard.services import summaries
from typeboard.services.errors import ConcurrentUpdateConflict


def attempt(wpm, accuracy, duration=60):
    return SimpleNamespace(wpm=wpm, accuracy=accuracy, duration=duration)


def bump_version(session, user_id):
    session.exec(
        update(User)
        .where(User.id == user_id)
        .values(stats_version=User.stats_version + 1)
        .execution_options(synchronize_session=False)
    )


def test_update_summary_writes_and_bumps_version(session, make_user):
    user = make_user("ada")

    updated = summaries.update_summary(session, User, user.id, attempt(50, 90))
    session.commit()

    stored = session.get(User, user.id, populate_existing=True)
    assert updated.total_tests == 1
    assert stored.total_tests == 1
    assert stored.average_wpm == 50
    assert stored.best_accuracy == 90
    assert stored.total_time_typed == 60
    assert stored.stats_version == 1


def test_update_summary_applies_to_typing_tests(session, make_test):
    test = make_test()

    summaries.update_summary(session, TypingTest, test.id, attempt(50, 90))
    summaries.update_summary(session, TypingTest, test.id, attempt(70, 95))
    session.commit()

    summary = summaries.read_summary(session, TypingTest, test.id)
    assert summary.total_tests == 2
    assert summary.average_wpm == 60.0
    assert summary.average_accuracy == 92.5


def test_update_summary_retries_after_concurrent_write(session, make_user, monkeypatch):
    user = make_user("grace")
    seen = []
    real_apply = summaries.apply_event

    def racing_apply(summary, event):
        if not seen:
            bump_version(session, user.id)
        seen.append(summary)
        return real_apply(summary, event)

    monkeypatch.setattr(summaries, "apply_event", racing_apply)

    updated = summaries.update_summary(session, User, user.id, attempt(64, 97))
    session.commit()

    stored = session.get(User, user.id, populate_existing=True)
    assert len(seen) == 2
    assert updated.total_tests == 1
    assert stored.total_tests == 1
    assert stored.stats_version == 2


def test_update_summary_gives_up_after_retries(session, make_user, monkeypatch):
    user = make_user("linus")
    real_apply = summaries.apply_event

    def always_racing(summary, event):
        bump_version(session, user.id)
        return real_apply(summary, event)

    monkeypatch.setattr(summaries, "apply_event", always_racing)

    with pytest.raises(ConcurrentUpdateConflict) as excinfo:
        summaries.update_summary(session, User, user.id, attempt(64, 97), retries=3)

    assert excinfo.value.attempts == 3
    session.rollback()
    stored = session.get(User, user.id, populate_existing=True)
    assert stored.total_tests == 0


def test_missing_subject_reads_as_none(session):
    assert summaries.read_summary(session, User, 404) is None
    assert summaries.update_summary(session, User, 404, attempt(50, 90)) is None
