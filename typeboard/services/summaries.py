"""Persistence of running summaries with optimistic concurrency."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional, Type, Union

from sqlalchemy import update
from sqlmodel import Session

from ..core.config import SUMMARY_UPDATE_RETRIES
from ..models import TypingTest, User
from .aggregation import Attempt, SubjectSummary, apply_event, summary_from_stats
from .errors import ConcurrentUpdateConflict

logger = logging.getLogger(__name__)

SubjectModel = Union[Type[User], Type[TypingTest]]


def read_summary(
    session: Session, model: SubjectModel, subject_id: int
) -> Optional[SubjectSummary]:
    """Current stored summary of a subject, or None if it does not exist."""

    subject = session.get(model, subject_id)
    if subject is None:
        return None
    return summary_from_stats(subject)


def update_summary(
    session: Session,
    model: SubjectModel,
    subject_id: int,
    event: Attempt,
    *,
    retries: int = SUMMARY_UPDATE_RETRIES,
) -> Optional[SubjectSummary]:
    """Apply one attempt to a subject's stored summary.

    The write only lands if ``stats_version`` still holds the value that was
    read; otherwise the row is read again and the update recomputed. The
    caller owns the transaction and commits or rolls back.
    """

    attempts = max(retries, 1)
    for attempt in range(1, attempts + 1):
        subject = session.get(model, subject_id, populate_existing=True)
        if subject is None:
            return None

        version = subject.stats_version
        updated = apply_event(summary_from_stats(subject), event)
        statement = (
            update(model)
            .where(model.id == subject_id, model.stats_version == version)
            .values(**asdict(updated), stats_version=version + 1)
            .execution_options(synchronize_session=False)
        )
        outcome = session.exec(statement)  # type: ignore[call-overload]
        if outcome.rowcount == 1:
            session.expire(subject)
            return updated

        logger.info(
            "%s %s summary changed concurrently (attempt %s/%s)",
            model.__name__,
            subject_id,
            attempt,
            attempts,
        )

    logger.warning("Giving up on %s %s summary update", model.__name__, subject_id)
    raise ConcurrentUpdateConflict(model.__name__, subject_id, attempts)


__all__ = ["SubjectModel", "read_summary", "update_summary"]
