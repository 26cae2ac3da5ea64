"""Fixtures for Polar client tests: a PolarClient on an httpx MockTransport."""

from __future__ import annotations

from datetime import date
from typing import Callable

import httpx
import pytest

from questfit.polar.client import PolarClient

TEST_DATE = date(2026, 2, 23)
TEST_TOKEN = "test-access-token"
TEST_POLAR_USER = "987654"

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that also keeps every request it served."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def make_client() -> Callable[[Handler], tuple[PolarClient, RecordingTransport]]:
    def _make(handler: Handler) -> tuple[PolarClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        client = PolarClient(
            client_id="test_client_id",
            client_secret="test_client_secret",
            redirect_uri="https://example.test/callback",
            http_client=httpx.AsyncClient(transport=transport),
        )
        return client, transport

    return _make


@pytest.fixture
def sleep_payload() -> dict:
    """A realistic Accesslink sleep record."""
    return {
        "polar_user": "https://www.polaraccesslink.com/v3/users/987654",
        "date": "2026-02-23",
        "sleep_start_time": "2026-02-22T23:10:00+01:00",
        "sleep_end_time": "2026-02-23T07:10:00+01:00",
        "device_id": "1111AAAA",
        "light_sleep": 14000,
        "deep_sleep": 6000,
        "rem_sleep": 6500,
        "sleep_score": 82,
        "sleep_goal": 28800,
        "hypnogram": {"00:39": 2, "00:50": 1},
    }
