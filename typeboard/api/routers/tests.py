"""Typing test catalog endpoints."""

from __future__ import annotations

import json
import random
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, func, or_, select

from ...core import get_session
from ...models import TypingTest
from ...schemas import TypingTestCreate
from ...services.aggregation import reconcile, summary_to_dict
from ...services.catalog import (
    MetadataFilter,
    apply_filter,
    count_words,
    typing_test_to_dict,
)
from ...services.leaderboards import recompute_test_summary
from ...services.summaries import read_summary

router = APIRouter(prefix="/tests", tags=["tests"])


def _catalog_query(statement, metadata_filter: MetadataFilter, search: Optional[str]):
    statement = apply_filter(statement.where(TypingTest.is_active == True), metadata_filter)  # noqa: E712
    if search:
        needle = search.strip().lower()
        statement = statement.where(
            or_(
                func.lower(TypingTest.title).contains(needle),
                func.lower(TypingTest.tags_json).contains(needle),
            )
        )
    return statement


@router.post("", status_code=201)
def create_test(body: TypingTestCreate, session: Session = Depends(get_session)):
    """Add a passage to the catalog."""

    test = TypingTest(
        title=body.title.strip(),
        content=body.content,
        difficulty=body.difficulty,
        category=body.category,
        language=body.language,
        duration=body.duration,
        word_count=count_words(body.content),
        character_count=len(body.content),
        created_by=body.created_by,
        tags_json=json.dumps([tag.strip() for tag in body.tags if tag.strip()]),
    )
    session.add(test)
    session.commit()
    session.refresh(test)
    return typing_test_to_dict(test)


@router.get("")
def list_tests(
    difficulty: Optional[str] = None,
    category: Optional[str] = None,
    duration: Optional[int] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
):
    """List active tests without their content."""

    metadata_filter = MetadataFilter(
        difficulty=difficulty, category=category, duration=duration
    )
    total = session.exec(
        _catalog_query(select(func.count(TypingTest.id)), metadata_filter, search)
    ).one()
    tests = session.exec(
        _catalog_query(select(TypingTest), metadata_filter, search)
        .order_by(TypingTest.created_at.desc(), TypingTest.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    return {
        "tests": [typing_test_to_dict(test, include_content=False) for test in tests],
        "pagination": {
            "current": page,
            "pages": (total + limit - 1) // limit,
            "total": total,
        },
    }


@router.get("/random")
def random_test(
    difficulty: Optional[str] = None,
    category: Optional[str] = None,
    duration: Optional[int] = None,
    session: Session = Depends(get_session),
):
    """Pick one active test matching the filters."""

    metadata_filter = MetadataFilter(
        difficulty=difficulty, category=category, duration=duration
    )
    count = session.exec(
        _catalog_query(select(func.count(TypingTest.id)), metadata_filter, None)
    ).one()
    if count == 0:
        raise HTTPException(404, "No tests found matching criteria")

    test = session.exec(
        _catalog_query(select(TypingTest), metadata_filter, None)
        .order_by(TypingTest.id)
        .offset(random.randrange(count))
        .limit(1)
    ).first()
    return {"test": typing_test_to_dict(test)}


@router.get("/categories")
def list_categories(session: Session = Depends(get_session)):
    categories = session.exec(
        select(TypingTest.category).where(TypingTest.is_active == True).distinct()  # noqa: E712
    ).all()
    return {"categories": sorted(categories)}


@router.get("/difficulties")
def list_difficulties(session: Session = Depends(get_session)):
    difficulties = session.exec(
        select(TypingTest.difficulty).where(TypingTest.is_active == True).distinct()  # noqa: E712
    ).all()
    return {"difficulties": sorted(difficulties)}


@router.get("/durations")
def list_durations(session: Session = Depends(get_session)):
    durations = session.exec(
        select(TypingTest.duration).where(TypingTest.is_active == True).distinct()  # noqa: E712
    ).all()
    return {"durations": sorted(durations)}


@router.get("/{test_id}")
def get_test(test_id: int, session: Session = Depends(get_session)):
    """Get an active test with its content."""

    test = session.get(TypingTest, test_id)
    if not test or not test.is_active:
        raise HTTPException(404, "Test not found")
    return {"test": typing_test_to_dict(test)}


@router.get("/{test_id}/summary")
def get_test_summary(test_id: int, session: Session = Depends(get_session)):
    """Running attempt statistics of a test, as maintained on submission."""

    summary = read_summary(session, TypingTest, test_id)
    if summary is None:
        raise HTTPException(404, "Test not found")
    return {"test_id": test_id, "summary": summary_to_dict(summary)}


@router.get("/{test_id}/stats")
def get_test_stats(test_id: int, session: Session = Depends(get_session)):
    """Running statistics next to a recomputation from stored results."""

    summary = read_summary(session, TypingTest, test_id)
    if summary is None:
        raise HTTPException(404, "Test not found")
    recomputed = recompute_test_summary(session, test_id)
    mismatches = reconcile(summary, recomputed)
    return {
        "test_id": test_id,
        "summary": summary_to_dict(summary),
        "recomputed": summary_to_dict(recomputed),
        "consistent": not mismatches,
        "mismatches": mismatches,
    }


__all__ = ["router"]
