"""Helpers for typing test catalog entries."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from sqlmodel import Session, select

from ..core.time import isoformat_z
from ..models import TypingTest

DIFFICULTIES = ("easy", "medium", "hard")
CATEGORIES = ("general", "programming", "literature", "business", "science", "quotes")

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class MetadataFilter:
    """Metadata predicate over typing tests; unset fields match anything."""

    difficulty: Optional[str] = None
    category: Optional[str] = None
    duration: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.difficulty is None and self.category is None and self.duration is None


def count_words(content: str) -> int:
    stripped = content.strip()
    if not stripped:
        return 0
    return len(_WHITESPACE.split(stripped))


def tags_from_test(test: TypingTest) -> List[str]:
    return json.loads(test.tags_json or "[]")


def apply_filter(statement, metadata_filter: MetadataFilter):
    """Narrow a ``select(TypingTest)`` statement by a metadata filter."""

    if metadata_filter.difficulty is not None:
        statement = statement.where(TypingTest.difficulty == metadata_filter.difficulty)
    if metadata_filter.category is not None:
        statement = statement.where(TypingTest.category == metadata_filter.category)
    if metadata_filter.duration is not None:
        statement = statement.where(TypingTest.duration == metadata_filter.duration)
    return statement


def resolve_test_ids(session: Session, metadata_filter: MetadataFilter) -> Optional[Set[int]]:
    """Ids of every test matching the filter, or None when nothing is filtered.

    Inactive tests are included: their past results still count.
    """

    if metadata_filter.is_empty:
        return None
    return set(session.exec(apply_filter(select(TypingTest.id), metadata_filter)).all())


def typing_test_to_dict(test: TypingTest, *, include_content: bool = True) -> Dict[str, Any]:
    """Serialise a typing test to an API-friendly dict."""

    data: Dict[str, Any] = {
        "id": test.id,
        "title": test.title,
        "difficulty": test.difficulty,
        "category": test.category,
        "language": test.language,
        "duration": test.duration,
        "word_count": test.word_count,
        "character_count": test.character_count,
        "tags": tags_from_test(test),
        "is_active": test.is_active,
        "created_by": test.created_by,
        "statistics": {
            "total_attempts": test.total_tests,
            "average_wpm": test.average_wpm,
            "average_accuracy": test.average_accuracy,
        },
        "created_at": isoformat_z(test.created_at),
    }
    if include_content:
        data["content"] = test.content
    return data


__all__ = [
    "CATEGORIES",
    "DIFFICULTIES",
    "MetadataFilter",
    "apply_filter",
    "count_words",
    "resolve_test_ids",
    "tags_from_test",
    "typing_test_to_dict",
]
