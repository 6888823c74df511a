"""Database model for typists."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field as ORMField

from ..core.time import utcnow
from .stats import SubjectStats


class User(SubjectStats, table=True):
    """Registered typist with profile, preferences and running stats."""

    id: Optional[int] = ORMField(default=None, primary_key=True)
    username: str = ORMField(index=True, unique=True)
    email: str = ORMField(index=True, unique=True)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    preferred_difficulty: str = ORMField(default="medium")
    preferred_duration: int = ORMField(default=60)
    theme: str = ORMField(default="light")
    is_active: bool = ORMField(default=True)
    created_at: datetime = ORMField(default_factory=utcnow)


__all__ = ["User"]
