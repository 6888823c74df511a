"""Database model for completed typing attempts."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field as ORMField, SQLModel

from ..core.time import utcnow


class TypingResult(SQLModel, table=True):
    """One completed attempt. Written once at submission, never updated."""

    __tablename__ = "typing_result"

    id: Optional[int] = ORMField(default=None, primary_key=True)
    user_id: int = ORMField(foreign_key="user.id", index=True)
    test_id: int = ORMField(foreign_key="typing_test.id", index=True)
    wpm: float = ORMField(index=True)
    accuracy: float
    duration: int
    words_typed: int
    characters_typed: int
    correct_characters: int
    incorrect_characters: int
    errors_json: str = "[]"
    keystrokes_json: str = "[]"
    completed: bool = True
    start_time: datetime
    end_time: datetime
    created_at: datetime = ORMField(default_factory=utcnow, index=True)


__all__ = ["TypingResult"]
