"""Fixtures for HTTP tests: the app on an in-memory store and a mocked Polar API.

``polar_routes`` maps ``(method, path)`` to a response factory; unknown
routes answer 404 the way Accesslink does for missing data.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from questfit.config import Settings
from questfit.debug_console import ConsoleCapture
from questfit.dependencies import SessionContext
from questfit.main import create_app
from questfit.polar.client import PolarClient
from questfit.store.memory import InMemoryDocumentStore
from questfit.sync.config_loader import load_sync_config

CRON_SECRET = "cron-secret"
WEBHOOK_SECRET = "whsec-test"

Route = Callable[[httpx.Request], httpx.Response]


def put(store: InMemoryDocumentStore, path: str, data: dict[str, Any]) -> None:
    """Seed a document from synchronous test code."""
    asyncio.run(store.set(path, data))


def fetch(store: InMemoryDocumentStore, path: str) -> dict[str, Any] | None:
    return asyncio.run(store.get(path))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        cron_secret=CRON_SECRET,
        debug=True,
        polar_webhook_signature_secret=WEBHOOK_SECRET,
        mobile_redirect_scheme="questfit://oauth/polar",
    )


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def polar_routes() -> dict[tuple[str, str], Route]:
    return {}


@pytest.fixture
def polar_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def session(settings, store, polar_routes, polar_requests) -> Iterator[SessionContext]:
    def handler(request: httpx.Request) -> httpx.Response:
        polar_requests.append(request)
        route = polar_routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404)
        return route(request)

    polar = PolarClient(
        client_id="test_client_id",
        client_secret="test_client_secret",
        redirect_uri="https://example.test/callback",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    console = ConsoleCapture(capacity=50)
    console.install()
    yield SessionContext(
        settings=settings,
        store=store,
        polar=polar,
        sync_config=load_sync_config(),
        console=console,
    )
    console.uninstall()


@pytest.fixture
def client(session: SessionContext) -> TestClient:
    return TestClient(create_app(session))


@pytest.fixture
def linked_user(store: InMemoryDocumentStore) -> str:
    put(
        store,
        "users/user-1",
        {"polarAccessToken": "tok", "polarUserId": "42", "xp": 1500, "totalWorkouts": 2},
    )
    return "user-1"


def list_docs(store: InMemoryDocumentStore, collection: str) -> list[dict[str, Any]]:
    return [data for _, data in asyncio.run(store.list_documents(collection))]
