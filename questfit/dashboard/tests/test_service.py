"""Tests for the instructor dashboard read model."""

from __future__ import annotations

from datetime import date

import pytest
import pytest_asyncio

from questfit.dashboard.service import DashboardService, NotAnInstructorError
from questfit.store.memory import InMemoryDocumentStore
from questfit.store.paths import polar_record

TODAY = date(2026, 2, 23)


@pytest_asyncio.fixture
async def store() -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    await store.set("users/coach", {"isInstructor": True, "displayName": "Coach"})
    await store.set("users/alice", {"displayName": "Alice", "lastSync": "2026-02-23T06:00:00Z"})
    await store.set("users/bob", {"displayName": "Bob"})
    await store.set("instructors/coach", {"selectedUsers": ["alice", "bob"]})
    return store


@pytest.fixture
def dashboard(store: InMemoryDocumentStore) -> DashboardService:
    return DashboardService(store)


# ---------------------------------------------------------------------------
# Instructor scoping
# ---------------------------------------------------------------------------


class TestInstructorScope:
    @pytest.mark.asyncio
    async def test_flag_must_be_true(self, dashboard: DashboardService, store) -> None:
        await store.set("users/eve", {"isInstructor": "yes"})

        assert await dashboard.is_instructor("coach") is True
        assert await dashboard.is_instructor("eve") is False
        assert await dashboard.is_instructor("nobody") is False

    @pytest.mark.asyncio
    async def test_require_instructor_raises(self, dashboard: DashboardService) -> None:
        with pytest.raises(NotAnInstructorError):
            await dashboard.require_instructor("alice")

    @pytest.mark.asyncio
    async def test_toggle_adds_and_removes(self, dashboard: DashboardService) -> None:
        assert await dashboard.toggle_user("coach", "bob") == ["alice"]
        assert await dashboard.toggle_user("coach", "carol") == ["alice", "carol"]
        assert await dashboard.get_selected_users("coach") == ["alice", "carol"]

    @pytest.mark.asyncio
    async def test_list_users_falls_back_to_id(self, dashboard: DashboardService, store) -> None:
        await store.set("users/zed", {})
        users = {u["id"]: u for u in await dashboard.list_users()}

        assert users["alice"]["displayName"] == "Alice"
        assert users["zed"]["displayName"] == "zed"


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------


class TestUserOverview:
    @pytest.mark.asyncio
    async def test_today_metrics(self, dashboard: DashboardService, store) -> None:
        key = TODAY.isoformat()
        await store.set(
            polar_record("alice", "activities", key),
            {"steps": 9000, "calories": 2100, "distance_from_steps": 6400},
        )
        await store.set(
            polar_record("alice", "cardioLoad", key), {"data": {"cardio_load_ratio": 1.2}}
        )
        await store.set(
            polar_record("alice", "sleep", key),
            {
                "sleep_start_time": "2026-02-22T23:00:00+00:00",
                "sleep_end_time": "2026-02-23T07:00:00+00:00",
                "sleep_goal": 28800,
                "sleep_score": 80,
            },
        )

        overview = await dashboard.user_overview("alice", TODAY)

        assert overview["lastSync"] == "2026-02-23T06:00:00Z"
        assert overview["todayActivity"] == {"steps": 9000, "calories": 2100, "distance": 6400}
        assert overview["todayCardioLoad"] == 1.2
        assert overview["todaySleep"] == {
            "duration": "8h 0m",
            "quality": 80,
            "goalDiff": "Goal achieved",
        }
        assert overview["totalMonthExercises"] == 0

    @pytest.mark.asyncio
    async def test_missing_data_is_omitted(self, dashboard: DashboardService) -> None:
        overview = await dashboard.user_overview("bob", TODAY)

        assert overview == {"userId": "bob", "totalMonthExercises": 0}

    @pytest.mark.asyncio
    async def test_last_sync_from_latest_summary(self, dashboard: DashboardService, store) -> None:
        await store.set(
            polar_record("bob", "syncSummary", "2026-02-21"), {"syncedAt": "2026-02-21T05:00:00Z"}
        )
        await store.set(
            polar_record("bob", "syncSummary", "2026-02-22"), {"syncedAt": "2026-02-22T05:00:00Z"}
        )

        overview = await dashboard.user_overview("bob", TODAY)
        assert overview["lastSync"] == "2026-02-22T05:00:00Z"

    @pytest.mark.asyncio
    async def test_month_count_stays_in_month(self, dashboard: DashboardService, store) -> None:
        for day, count in [("2026-01-31", 5), ("2026-02-01", 2), ("2026-02-23", 1), ("2026-03-01", 9)]:
            await store.set(polar_record("alice", "exercises", day), {"date": day, "count": count})

        assert await dashboard.month_exercise_count("alice", TODAY) == 3

    @pytest.mark.asyncio
    async def test_overviews_follow_selection(self, dashboard: DashboardService) -> None:
        overviews = await dashboard.overviews("coach", TODAY)
        assert [o["userId"] for o in overviews] == ["alice", "bob"]


# ---------------------------------------------------------------------------
# Sleep series
# ---------------------------------------------------------------------------


class TestSleepScores:
    @pytest.mark.asyncio
    async def test_seven_days_oldest_first(self, dashboard: DashboardService, store) -> None:
        await store.set(polar_record("alice", "sleep", "2026-02-23"), {"sleep_score": 75})
        await store.set(polar_record("alice", "sleep", "2026-02-20"), {"sleep_score": 0})

        series = await dashboard.sleep_scores("coach", TODAY)

        assert series["dates"][0] == "2026-02-17"
        assert series["dates"][-1] == "2026-02-23"
        alice = series["users"]["alice"]
        assert len(alice) == 7
        assert alice[-1] == {"date": "2026-02-23", "score": 75}
        assert alice[3] == {"date": "2026-02-20", "score": None}
        assert all(point["score"] is None for point in series["users"]["bob"])
