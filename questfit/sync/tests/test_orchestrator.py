"""Tests for the per-user, per-date sync orchestrator."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from questfit.errors import MissingCredentialsError, PolarAPIError
from questfit.services.accounts import AccountRepository
from questfit.store.memory import InMemoryDocumentStore
from questfit.sync.config_loader import SyncConfig
from questfit.sync.orchestrator import ERROR, FOUND, MISSING, SyncOrchestrator
from questfit.sync.tests.conftest import TEST_DATE, TEST_USER, not_found


@pytest.fixture
def orchestrator(
    polar: MagicMock,
    store: InMemoryDocumentStore,
    accounts: AccountRepository,
    sync_config: SyncConfig,
) -> SyncOrchestrator:
    return SyncOrchestrator(polar, store, accounts, sync_config)


def record(store: InMemoryDocumentStore, category: str) -> dict | None:
    return store.dump().get(f"users/{TEST_USER}/polarData/{category}/all/2026-02-23")


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class TestCategoryOutcomes:
    @pytest.mark.asyncio
    async def test_all_categories_found(
        self, orchestrator: SyncOrchestrator, linked_store: InMemoryDocumentStore
    ) -> None:
        summary = await orchestrator.sync_user(TEST_USER, TEST_DATE)

        assert set(summary.per_category.values()) == {FOUND}
        assert summary.total == 6
        assert summary.successful == 6
        assert summary.failed == 0
        assert summary.errors == []

    @pytest.mark.asyncio
    async def test_not_found_is_missing_and_sync_continues(
        self,
        orchestrator: SyncOrchestrator,
        polar: MagicMock,
        linked_store: InMemoryDocumentStore,
    ) -> None:
        polar.get_sleep = AsyncMock(side_effect=not_found())
        summary = await orchestrator.sync_user(TEST_USER, TEST_DATE)

        assert summary.per_category["sleep"] == MISSING
        assert summary.per_category["nightlyRecharge"] == FOUND
        assert summary.failed == 0
        assert summary.successful == 6
        assert record(linked_store, "sleep") is None

    @pytest.mark.asyncio
    async def test_api_and_transport_errors_are_counted(
        self,
        orchestrator: SyncOrchestrator,
        polar: MagicMock,
        linked_store: InMemoryDocumentStore,
    ) -> None:
        polar.get_daily_activity = AsyncMock(side_effect=PolarAPIError(500, "boom"))
        polar.get_nightly_recharge = AsyncMock(
            side_effect=httpx.ReadTimeout("timed out")
        )
        summary = await orchestrator.sync_user(TEST_USER, TEST_DATE)

        assert summary.per_category["activities"] == ERROR
        assert summary.per_category["nightlyRecharge"] == ERROR
        assert summary.failed == 2
        assert summary.successful == 4
        assert summary.total == summary.successful + summary.failed
        assert [e["category"] for e in summary.errors] == ["activities", "nightlyRecharge"]
        assert summary.errors[0]["status"] == 500

    @pytest.mark.asyncio
    async def test_empty_cardio_load_is_missing(
        self,
        orchestrator: SyncOrchestrator,
        polar: MagicMock,
        linked_store: InMemoryDocumentStore,
    ) -> None:
        polar.get_cardio_load = AsyncMock(return_value=[])
        summary = await orchestrator.sync_user(TEST_USER, TEST_DATE)
        assert summary.per_category["cardioLoad"] == MISSING

    @pytest.mark.asyncio
    async def test_cardio_load_for_another_date_is_missing(
        self,
        orchestrator: SyncOrchestrator,
        polar: MagicMock,
        linked_store: InMemoryDocumentStore,
    ) -> None:
        polar.get_cardio_load = AsyncMock(
            return_value=[{"date": "2026-03-10", "cardio_load_ratio": 0.9}]
        )
        summary = await orchestrator.sync_user(TEST_USER, TEST_DATE)

        assert summary.per_category["cardioLoad"] == MISSING
        assert record(linked_store, "cardioLoad") is None

    @pytest.mark.asyncio
    async def test_exercise_details_all_not_found_is_missing(
        self,
        orchestrator: SyncOrchestrator,
        polar: MagicMock,
        linked_store: InMemoryDocumentStore,
    ) -> None:
        polar.get_exercise = AsyncMock(side_effect=not_found())
        summary = await orchestrator.sync_user(TEST_USER, TEST_DATE)

        assert summary.per_category["exercises"] == MISSING
        assert summary.errors == []
        assert summary.failed == 0
        assert record(linked_store, "exercises") is None

    @pytest.mark.asyncio
    async def test_exercise_details_all_failing_record_one_error(
        self,
        orchestrator: SyncOrchestrator,
        polar: MagicMock,
        linked_store: InMemoryDocumentStore,
    ) -> None:
        polar.list_exercises = AsyncMock(
            return_value=[
                {"id": "ex1", "upload_time": "2026-02-23T08:00:00Z"},
                {"id": "ex3", "upload_time": "2026-02-23T18:00:00Z"},
            ]
        )
        polar.get_exercise = AsyncMock(side_effect=PolarAPIError(502, "bad gateway"))
        summary = await orchestrator.sync_user(TEST_USER, TEST_DATE)

        assert summary.per_category["exercises"] == ERROR
        assert summary.failed == 1
        assert len(summary.errors) == 1
        assert summary.errors[0]["category"] == "exercises"
        assert summary.errors[0]["status"] == 502
        assert not summary.errors[0]["message"].startswith("exercise ")

    @pytest.mark.asyncio
    async def test_missing_credentials_raise(self, orchestrator: SyncOrchestrator) -> None:
        with pytest.raises(MissingCredentialsError):
            await orchestrator.sync_user("nobody", TEST_DATE)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class TestPersistence:
    @pytest.mark.asyncio
    async def test_allowlist_applied_before_write(
        self, orchestrator: SyncOrchestrator, linked_store: InMemoryDocumentStore
    ) -> None:
        await orchestrator.sync_user(TEST_USER, TEST_DATE)

        activity = record(linked_store, "activities")
        assert activity["steps"] == 9000
        assert "secret" not in activity
        assert activity["date"] == "2026-02-23"
        assert "syncedAt" in activity

        sleep = record(linked_store, "sleep")
        assert "polar_user" not in sleep

    @pytest.mark.asyncio
    async def test_cardio_load_shape(
        self, orchestrator: SyncOrchestrator, linked_store: InMemoryDocumentStore
    ) -> None:
        await orchestrator.sync_user(TEST_USER, TEST_DATE)

        cardio = record(linked_store, "cardioLoad")
        assert cardio["data"] == {"date": "2026-02-23", "cardio_load_ratio": 1.2}
        assert "syncedAt" in cardio

    @pytest.mark.asyncio
    async def test_cardio_load_picks_entry_for_target_date(
        self,
        orchestrator: SyncOrchestrator,
        polar: MagicMock,
        linked_store: InMemoryDocumentStore,
    ) -> None:
        polar.get_cardio_load = AsyncMock(
            return_value=[
                {"date": "2026-02-25", "cardio_load_ratio": 0.8},
                {"date": "2026-02-24", "cardio_load_ratio": 1.0},
                {"date": "2026-02-23", "cardio_load_ratio": 1.4},
            ]
        )
        await orchestrator.sync_user(TEST_USER, TEST_DATE)

        assert record(linked_store, "cardioLoad")["data"] == {
            "date": "2026-02-23",
            "cardio_load_ratio": 1.4,
        }
        requested = polar.get_cardio_load.await_args.kwargs["days"]
        assert requested >= (datetime.now(timezone.utc).date() - TEST_DATE).days + 1

    @pytest.mark.asyncio
    async def test_exercises_filtered_by_upload_date(
        self,
        orchestrator: SyncOrchestrator,
        polar: MagicMock,
        linked_store: InMemoryDocumentStore,
    ) -> None:
        summary = await orchestrator.sync_user(TEST_USER, TEST_DATE)

        polar.get_exercise.assert_awaited_once_with("tok", "ex1")
        exercises = record(linked_store, "exercises")
        assert exercises["count"] == 1
        assert exercises["exercises"][0]["calories"] == 450
        assert "polar_user" not in exercises["exercises"][0]
        assert summary.exercise_count == 1

    @pytest.mark.asyncio
    async def test_single_exercise_failure_does_not_fail_category(
        self,
        orchestrator: SyncOrchestrator,
        polar: MagicMock,
        linked_store: InMemoryDocumentStore,
    ) -> None:
        polar.list_exercises = AsyncMock(
            return_value=[
                {"id": "ex1", "upload_time": "2026-02-23T08:00:00Z"},
                {"id": "ex3", "upload_time": "2026-02-23T18:00:00Z"},
            ]
        )
        polar.get_exercise = AsyncMock(
            side_effect=[{"id": "ex1", "calories": 300}, PolarAPIError(502, "bad gateway")]
        )
        summary = await orchestrator.sync_user(TEST_USER, TEST_DATE)

        assert summary.per_category["exercises"] == FOUND
        assert summary.failed == 0
        assert len(summary.errors) == 1
        assert record(linked_store, "exercises")["count"] == 1

    @pytest.mark.asyncio
    async def test_summary_and_last_sync_written(
        self, orchestrator: SyncOrchestrator, linked_store: InMemoryDocumentStore
    ) -> None:
        summary = await orchestrator.sync_user(TEST_USER, TEST_DATE)

        stored = record(linked_store, "syncSummary")
        assert stored["perCategory"] == summary.per_category
        assert stored["itemsStored"] == 6
        user = await linked_store.get(f"users/{TEST_USER}")
        assert user["lastSync"] == summary.synced_at

    @pytest.mark.asyncio
    async def test_resync_overwrites(
        self,
        orchestrator: SyncOrchestrator,
        polar: MagicMock,
        linked_store: InMemoryDocumentStore,
    ) -> None:
        await orchestrator.sync_user(TEST_USER, TEST_DATE)
        polar.get_daily_activity = AsyncMock(return_value={"steps": 12000})
        await orchestrator.sync_user(TEST_USER, TEST_DATE)

        activity = record(linked_store, "activities")
        assert activity["steps"] == 12000
        assert "calories" not in activity
