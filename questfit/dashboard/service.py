"""Instructor dashboard queries.

An instructor is a user whose document carries ``isInstructor: true``.  The
users an instructor follows are listed in ``instructors/{id}.selectedUsers``;
every read below is scoped to that list.
"""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any

from questfit.game.sleep import summarize_sleep
from questfit.polar.models import ACTIVITIES, CARDIO_LOAD, EXERCISES, SLEEP, utc_now_iso
from questfit.store import DocumentStore
from questfit.store.paths import (
    SYNC_SUMMARY,
    USERS,
    instructor_doc,
    polar_collection,
    polar_record,
    user_doc,
)

logger = logging.getLogger("questfit.dashboard")

SLEEP_SERIES_DAYS = 7


class NotAnInstructorError(LookupError):
    """The requesting user is not flagged as an instructor."""


class DashboardService:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def is_instructor(self, user_id: str) -> bool:
        data = await self._store.get(user_doc(user_id))
        return bool(data) and data.get("isInstructor") is True

    async def require_instructor(self, user_id: str) -> None:
        if not await self.is_instructor(user_id):
            raise NotAnInstructorError(user_id)

    async def list_users(self) -> list[dict[str, Any]]:
        """Every user, as shown in the selection list."""
        docs = await self._store.list_documents(USERS)
        return [
            {
                "id": doc_id,
                "displayName": data.get("displayName") or doc_id,
                "lastSync": data.get("lastSync"),
                "email": data.get("email"),
                "photoURL": data.get("photoURL"),
            }
            for doc_id, data in docs
        ]

    async def get_selected_users(self, instructor_id: str) -> list[str]:
        data = await self._store.get(instructor_doc(instructor_id))
        return list((data or {}).get("selectedUsers") or [])

    async def save_selected_users(self, instructor_id: str, user_ids: list[str]) -> list[str]:
        await self._store.set(
            instructor_doc(instructor_id),
            {"selectedUsers": user_ids, "updatedAt": utc_now_iso()},
            merge=True,
        )
        return user_ids

    async def toggle_user(self, instructor_id: str, user_id: str) -> list[str]:
        selected = await self.get_selected_users(instructor_id)
        if user_id in selected:
            selected.remove(user_id)
        else:
            selected.append(user_id)
        return await self.save_selected_users(instructor_id, selected)

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    async def user_overview(self, user_id: str, today: date | None = None) -> dict[str, Any]:
        """Today's activity, cardio load, sleep and the month's exercise count.

        Args:
            user_id: Followed user.
            today:   Reference date (UTC today by default).
        """
        day = today or datetime.now(timezone.utc).date()
        key = day.isoformat()
        overview: dict[str, Any] = {"userId": user_id}

        user = await self._store.get(user_doc(user_id)) or {}
        last_sync = user.get("lastSync") or await self._latest_summary_sync(user_id)
        if last_sync:
            overview["lastSync"] = last_sync

        activity = await self._store.get(polar_record(user_id, ACTIVITIES, key))
        if activity is not None:
            overview["todayActivity"] = {
                "steps": activity.get("steps"),
                "calories": activity.get("calories"),
                "distance": activity.get("distance_from_steps"),
            }

        cardio = await self._store.get(polar_record(user_id, CARDIO_LOAD, key))
        if cardio is not None:
            overview["todayCardioLoad"] = (cardio.get("data") or {}).get("cardio_load_ratio")

        sleep = await self._store.get(polar_record(user_id, SLEEP, key))
        if sleep is not None:
            overview["todaySleep"] = summarize_sleep(sleep)

        overview["totalMonthExercises"] = await self.month_exercise_count(user_id, day)
        return overview

    async def overviews(self, instructor_id: str, today: date | None = None) -> list[dict[str, Any]]:
        result = []
        for user_id in await self.get_selected_users(instructor_id):
            result.append(await self.user_overview(user_id, today))
        return result

    async def month_exercise_count(self, user_id: str, day: date) -> int:
        """Sum of ``count`` over the exercises days of ``day``'s month."""
        last = calendar.monthrange(day.year, day.month)[1]
        docs = await self._store.list_documents(
            polar_collection(user_id, EXERCISES),
            id_start=day.replace(day=1).isoformat(),
            id_end=day.replace(day=last).isoformat(),
        )
        return sum(int(data.get("count") or 0) for _, data in docs)

    async def sleep_scores(
        self, instructor_id: str, today: date | None = None
    ) -> dict[str, Any]:
        """Sleep score per followed user for the last seven days, oldest first.

        Days without a record, or with a zero score, map to None.
        """
        end = today or datetime.now(timezone.utc).date()
        dates = [
            (end - timedelta(days=offset)).isoformat()
            for offset in range(SLEEP_SERIES_DAYS - 1, -1, -1)
        ]
        series: dict[str, list[dict[str, Any]]] = {}
        for user_id in await self.get_selected_users(instructor_id):
            scores = []
            for key in dates:
                record = await self._store.get(polar_record(user_id, SLEEP, key))
                scores.append({"date": key, "score": (record or {}).get("sleep_score") or None})
            series[user_id] = scores
        return {"dates": dates, "users": series}

    async def _latest_summary_sync(self, user_id: str) -> str | None:
        docs = await self._store.list_documents(
            polar_collection(user_id, SYNC_SUMMARY), order_by="syncedAt", descending=True, limit=1
        )
        return docs[0][1].get("syncedAt") if docs else None
