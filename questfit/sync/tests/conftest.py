"""Shared fixtures for sync tests: an in-memory store and a mocked Polar client."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from questfit.errors import PolarNotFoundError
from questfit.polar.client import PolarClient
from questfit.services.accounts import AccountRepository
from questfit.store.memory import InMemoryDocumentStore
from questfit.sync.config_loader import SyncConfig, load_sync_config

TEST_DATE = date(2026, 2, 23)
TEST_USER = "user-1"


def not_found() -> PolarNotFoundError:
    return PolarNotFoundError(404, None, "https://www.polaraccesslink.com/v3/test")


@pytest.fixture
def sync_config() -> SyncConfig:
    """The bundled allow-list."""
    return load_sync_config()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def accounts(store: InMemoryDocumentStore) -> AccountRepository:
    return AccountRepository(store)


@pytest_asyncio.fixture
async def linked_store(store: InMemoryDocumentStore) -> InMemoryDocumentStore:
    await store.set(
        f"users/{TEST_USER}",
        {"polarAccessToken": "tok", "polarUserId": "42", "displayName": "Test"},
    )
    return store


@pytest.fixture
def polar() -> MagicMock:
    """PolarClient mock where every daily category returns data for TEST_DATE."""
    client = MagicMock(spec=PolarClient)
    client.get_daily_activity = AsyncMock(
        return_value={"steps": 9000, "calories": 2100, "distance_from_steps": 6.2, "secret": "x"}
    )
    client.get_sleep = AsyncMock(
        return_value={"sleep_score": 80, "sleep_goal": 28800, "polar_user": "https://x"}
    )
    client.get_nightly_recharge = AsyncMock(
        return_value={"ans_charge": 3.2, "hrv_samples": {"00:00": 40}}
    )
    client.get_continuous_heart_rate = AsyncMock(
        return_value={"date": "2026-02-23", "heart_rate_samples": [{"heart_rate": 60}]}
    )
    client.get_cardio_load = AsyncMock(
        return_value=[{"date": "2026-02-23", "cardio_load_ratio": 1.2, "extra": True}]
    )
    client.list_exercises = AsyncMock(
        return_value=[
            {"id": "ex1", "upload_time": "2026-02-23T08:00:00.000Z"},
            {"id": "ex2", "upload_time": "2026-02-22T19:00:00.000Z"},
        ]
    )
    client.get_exercise = AsyncMock(
        return_value={
            "id": "ex1",
            "upload_time": "2026-02-23T08:00:00.000Z",
            "calories": 450,
            "heart_rate": {"average": 140, "maximum": 175},
            "polar_user": "https://x",
        }
    )
    return client
