"""User profile and statistics endpoints."""

from __future__ import annotations

import re
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, func, or_, select

from ...core import get_session, isoformat_z
from ...models import User
from ...schemas import ProfileUpdate, UserCreate
from ...services.aggregation import reconcile, summary_from_stats, summary_to_dict
from ...services.leaderboards import recompute_user_summary
from ...services.summaries import read_summary

router = APIRouter(prefix="/users", tags=["users"])

_USERNAME = re.compile(r"^[A-Za-z0-9_]+$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]{2,}$")
# Profile fields an explicit null clears; the rest are preferences with defaults.
_NULLABLE_FIELDS = ("first_name", "last_name")


def _user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "profile": {
            "first_name": user.first_name,
            "last_name": user.last_name,
        },
        "preferences": {
            "preferred_difficulty": user.preferred_difficulty,
            "preferred_duration": user.preferred_duration,
            "theme": user.theme,
        },
        "stats": summary_to_dict(summary_from_stats(user)),
        "is_active": user.is_active,
        "created_at": isoformat_z(user.created_at),
    }


def _get_active_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(404, "User not found")
    return user


@router.post("", status_code=201)
def create_user(body: UserCreate, session: Session = Depends(get_session)):
    """Register a typist by username and email."""

    username = body.username.strip()
    email = body.email.strip().lower()
    if not _USERNAME.match(username):
        raise HTTPException(
            400, "Username can only contain letters, numbers, and underscores"
        )
    if not _EMAIL.match(email):
        raise HTTPException(400, "Please provide a valid email")

    existing = session.exec(
        select(User).where(
            or_(func.lower(User.username) == username.lower(), User.email == email)
        )
    ).first()
    if existing:
        raise HTTPException(409, "Username or email already registered")

    user = User(
        username=username,
        email=email,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return {"user": _user_to_dict(user)}


@router.get("/{user_id}")
def get_profile(user_id: int, session: Session = Depends(get_session)):
    """Profile, preferences and running stats of a user."""

    return {"user": _user_to_dict(_get_active_user(session, user_id))}


@router.patch("/{user_id}")
def update_profile(
    user_id: int, body: ProfileUpdate, session: Session = Depends(get_session)
):
    """Update profile fields and preferences; omitted fields are kept."""

    user = _get_active_user(session, user_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is not None or field in _NULLABLE_FIELDS:
            setattr(user, field, value)
    session.add(user)
    session.commit()
    session.refresh(user)
    return {"user": _user_to_dict(user)}


@router.delete("/{user_id}")
def deactivate_user(user_id: int, session: Session = Depends(get_session)):
    """Deactivate an account. Its results stay on the leaderboards."""

    user = _get_active_user(session, user_id)
    user.is_active = False
    session.add(user)
    session.commit()
    return {"ok": True, "deactivated_user": user_id}


@router.get("/{user_id}/summary")
def get_user_summary(user_id: int, session: Session = Depends(get_session)):
    """Running statistics as maintained on every submission."""

    summary = read_summary(session, User, user_id)
    if summary is None:
        raise HTTPException(404, "User not found")
    return {"user_id": user_id, "summary": summary_to_dict(summary)}


@router.get("/{user_id}/stats")
def get_user_stats(user_id: int, session: Session = Depends(get_session)):
    """Running statistics next to a recomputation from stored results."""

    summary = read_summary(session, User, user_id)
    if summary is None:
        raise HTTPException(404, "User not found")
    recomputed = recompute_user_summary(session, user_id)
    mismatches = reconcile(summary, recomputed)
    return {
        "user_id": user_id,
        "summary": summary_to_dict(summary),
        "recomputed": summary_to_dict(recomputed),
        "consistent": not mismatches,
        "mismatches": mismatches,
    }


__all__ = ["router"]
