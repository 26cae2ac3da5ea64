"""Instructor dashboard endpoints.

Every route checks ``isInstructor`` on the caller's user document and only
returns data for the users in the instructor's selection.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter

from questfit.dependencies import Session
from questfit.models import SelectedUsersRequest

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/{instructor_id}/users")
async def list_users(instructor_id: str, session: Session) -> dict:
    dashboard = session.dashboard()
    await dashboard.require_instructor(instructor_id)
    return {
        "users": await dashboard.list_users(),
        "selectedUsers": await dashboard.get_selected_users(instructor_id),
    }


@router.put("/{instructor_id}/selected-users")
async def save_selected_users(
    instructor_id: str, body: SelectedUsersRequest, session: Session
) -> dict:
    dashboard = session.dashboard()
    await dashboard.require_instructor(instructor_id)
    return {"selectedUsers": await dashboard.save_selected_users(instructor_id, body.user_ids)}


@router.post("/{instructor_id}/selected-users/{user_id}/toggle")
async def toggle_user(instructor_id: str, user_id: str, session: Session) -> dict:
    dashboard = session.dashboard()
    await dashboard.require_instructor(instructor_id)
    return {"selectedUsers": await dashboard.toggle_user(instructor_id, user_id)}


@router.get("/{instructor_id}/overview")
async def overview(instructor_id: str, session: Session, day: date | None = None) -> dict:
    dashboard = session.dashboard()
    await dashboard.require_instructor(instructor_id)
    return {"overviews": await dashboard.overviews(instructor_id, day)}


@router.get("/{instructor_id}/sleep-scores")
async def sleep_scores(instructor_id: str, session: Session, day: date | None = None) -> dict:
    dashboard = session.dashboard()
    await dashboard.require_instructor(instructor_id)
    return await dashboard.sleep_scores(instructor_id, day)
