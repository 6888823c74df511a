"""Outcomes and failures raised by the service layer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NotFound:
    """A referenced user, test or result does not exist."""

    what: str

    @property
    def message(self) -> str:
        return f"{self.what} not found"


@dataclass(frozen=True)
class InconsistentInput:
    """Counters that cannot be repaired without inventing data."""

    reason: str


class ConcurrentUpdateConflict(RuntimeError):
    """A summary kept changing under us for every permitted retry."""

    def __init__(self, subject: str, subject_id: int, attempts: int) -> None:
        super().__init__(
            f"{subject} {subject_id} summary update lost {attempts} races; try again"
        )
        self.subject = subject
        self.subject_id = subject_id
        self.attempts = attempts


class RankingAborted(RuntimeError):
    """A leaderboard scan ran past its deadline."""


__all__ = [
    "ConcurrentUpdateConflict",
    "InconsistentInput",
    "NotFound",
    "RankingAborted",
]
