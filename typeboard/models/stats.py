"""Running statistics columns shared by users and typing tests."""

from __future__ import annotations

from sqlmodel import Field as ORMField, SQLModel


class SubjectStats(SQLModel):
    """Subject Summary columns, maintained only by the summary store."""

    total_tests: int = ORMField(default=0)
    average_wpm: float = ORMField(default=0.0)
    average_accuracy: float = ORMField(default=0.0)
    best_wpm: float = ORMField(default=0.0)
    best_accuracy: float = ORMField(default=0.0)
    total_time_typed: int = ORMField(default=0)
    stats_version: int = ORMField(default=0)


__all__ = ["SubjectStats"]
