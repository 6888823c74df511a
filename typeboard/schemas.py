"""Request payload schemas.

Range and type checks live here so the service layer can assume sane
inputs; FastAPI answers 422 for anything that does not fit.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import FiniteFloat
from sqlmodel import Field, SQLModel

Difficulty = Literal["easy", "medium", "hard"]
Category = Literal["general", "programming", "literature", "business", "science", "quotes"]


class TypingErrorIn(SQLModel):
    position: int = Field(ge=0)
    expected: Optional[str] = None
    typed: Optional[str] = None
    timestamp: Optional[FiniteFloat] = None


class KeystrokeIn(SQLModel):
    key: str
    timestamp: FiniteFloat
    correct: bool


class ResultSubmission(SQLModel):
    user_id: int
    test_id: int
    wpm: FiniteFloat = Field(ge=0)
    accuracy: FiniteFloat = Field(ge=0, le=100)
    duration: int = Field(ge=1)
    words_typed: int = Field(ge=0)
    characters_typed: int = Field(ge=0)
    correct_characters: int = Field(ge=0)
    incorrect_characters: int = Field(ge=0)
    errors: List[TypingErrorIn] = Field(default_factory=list)
    keystrokes: List[KeystrokeIn] = Field(default_factory=list)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


class TypingTestCreate(SQLModel):
    title: str = Field(min_length=1, max_length=100)
    content: str = Field(min_length=50)
    difficulty: Difficulty
    category: Category = "general"
    language: str = "english"
    duration: int = Field(ge=15, le=300)
    tags: List[str] = Field(default_factory=list)
    created_by: Optional[int] = None


class UserCreate(SQLModel):
    username: str = Field(min_length=3, max_length=30)
    email: str = Field(min_length=3, max_length=254)
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)


class ProfileUpdate(SQLModel):
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    preferred_difficulty: Optional[Difficulty] = None
    preferred_duration: Optional[int] = Field(default=None, ge=15, le=300)
    theme: Optional[Literal["light", "dark"]] = None


__all__ = [
    "KeystrokeIn",
    "ProfileUpdate",
    "ResultSubmission",
    "TypingErrorIn",
    "TypingTestCreate",
    "UserCreate",
]
