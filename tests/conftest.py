from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timedelta  # noqa: E402
from typing import Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from typeboard.app import app  # noqa: E402
from typeboard.core import get_session, utcnow  # noqa: E402
from typeboard.models import TypingResult, TypingTest, User  # noqa: E402

PASSAGE = (
    "The quick brown fox jumps over the lazy dog. This pangram contains every "
    "letter of the alphabet at least once."
)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def _session_override():
        return session

    app.dependency_overrides[get_session] = _session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    def _make_user(username: str) -> User:
        user = User(username=username, email=f"{username}@example.com")
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_test(session):
    def _make_test(
        title: str = "Fox",
        *,
        difficulty: str = "easy",
        category: str = "general",
        duration: int = 60,
        is_active: bool = True,
    ) -> TypingTest:
        test = TypingTest(
            title=title,
            content=PASSAGE,
            difficulty=difficulty,
            category=category,
            duration=duration,
            word_count=len(PASSAGE.split()),
            character_count=len(PASSAGE),
            is_active=is_active,
        )
        session.add(test)
        session.commit()
        session.refresh(test)
        return test

    return _make_test


@pytest.fixture
def add_result(session):
    """Insert a result row directly, leaving summaries alone."""

    def _add_result(
        user: User,
        test: TypingTest,
        *,
        wpm: float,
        accuracy: float,
        duration: int = 60,
        created_at: Optional[datetime] = None,
    ) -> TypingResult:
        created = created_at or utcnow()
        result = TypingResult(
            user_id=user.id,
            test_id=test.id,
            wpm=wpm,
            accuracy=accuracy,
            duration=duration,
            words_typed=int(wpm * duration / 60),
            characters_typed=100,
            correct_characters=int(accuracy),
            incorrect_characters=100 - int(accuracy),
            start_time=created - timedelta(seconds=duration),
            end_time=created,
            created_at=created,
        )
        session.add(result)
        session.commit()
        session.refresh(result)
        return result

    return _add_result


@pytest.fixture
def submission():
    """Valid result payload with 250 correct and 50 incorrect characters."""

    def _submission(user_id: int, test_id: int, **overrides):
        payload = {
            "user_id": user_id,
            "test_id": test_id,
            "wpm": 50.0,
            "accuracy": 100.0,
            "duration": 60,
            "words_typed": 50,
            "characters_typed": 300,
            "correct_characters": 250,
            "incorrect_characters": 50,
        }
        payload.update(overrides)
        return payload

    return _submission
