"""HTTP tests for health, OAuth bounce, cron, webhook receiver and debug logs."""

from __future__ import annotations

import json
import logging

from questfit.polar.webhooks import compute_signature
from questfit.routers.tests.conftest import CRON_SECRET, WEBHOOK_SECRET, fetch, put

API = "/api/v1"


def test_health(client) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["store"] == "InMemoryDocumentStore"


# ---------------------------------------------------------------------------
# Mobile OAuth callback
# ---------------------------------------------------------------------------


class TestMobileCallback:
    def test_code_is_forwarded(self, client) -> None:
        response = client.get(
            f"{API}/auth/mobile-callback", params={"code": "a b"}, follow_redirects=False
        )

        assert response.status_code == 302
        assert response.headers["location"] == "questfit://oauth/polar?code=a%20b"

    def test_error_is_forwarded(self, client) -> None:
        response = client.get(
            f"{API}/auth/mobile-callback",
            params={"error": "access_denied"},
            follow_redirects=False,
        )

        assert response.status_code == 302
        assert response.headers["location"] == "questfit://oauth/polar?error=access_denied"

    def test_missing_code(self, client) -> None:
        response = client.get(f"{API}/auth/mobile-callback", follow_redirects=False)
        assert response.status_code == 400


# ---------------------------------------------------------------------------
# Cron
# ---------------------------------------------------------------------------


class TestDailyCron:
    URL = f"{API}/cron/daily-polar-sync"

    def test_rejects_wrong_secret(self, client) -> None:
        response = client.get(self.URL, headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_no_linked_users(self, client) -> None:
        response = client.get(self.URL, headers={"Authorization": f"Bearer {CRON_SECRET}"})

        assert response.status_code == 200
        assert response.json()["message"] == "No users to sync"

    def test_syncs_linked_users(self, client, store, linked_user) -> None:
        put(store, "users/half-linked", {"polarAccessToken": "tok2"})

        response = client.post(self.URL, headers={"Authorization": f"Bearer {CRON_SECRET}"})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Daily sync completed"
        results = body["results"]
        assert results["total"] == 2
        assert results["successful"] == 1
        assert results["failed"] == 1
        assert results["synced"][0]["userId"] == linked_user
        assert results["errors"][0]["userId"] == "half-linked"


# ---------------------------------------------------------------------------
# Webhook receiver
# ---------------------------------------------------------------------------


class TestWebhookReceiver:
    URL = f"{API}/polar/webhook"

    def post_signed(self, client, body: dict, secret: str = WEBHOOK_SECRET):
        raw = json.dumps(body).encode()
        return client.post(
            self.URL,
            content=raw,
            headers={
                "Content-Type": "application/json",
                "Polar-Webhook-Signature": compute_signature(raw, secret),
            },
        )

    def test_ping(self, client) -> None:
        response = client.post(self.URL, json={"ping": True})

        assert response.status_code == 200
        assert response.json() == {"message": "Pong"}

    def test_bad_signature(self, client) -> None:
        response = self.post_signed(client, {"event": "SLEEP", "user_id": 42}, secret="wrong")
        assert response.status_code == 401

    def test_missing_signature_is_rejected(self, client, store, linked_user) -> None:
        response = client.post(
            self.URL,
            json={"event": "SLEEP", "user_id": 42, "timestamp": "2026-02-23T10:00:00Z"},
        )

        assert response.status_code == 401
        assert fetch(store, f"users/{linked_user}/polarData/syncSummary/all/2026-02-23") is None

    def test_unsigned_accepted_without_secret(self, client, settings) -> None:
        settings.polar_webhook_signature_secret = ""
        response = client.post(self.URL, json={"event": "SLEEP", "user_id": 999})

        assert response.status_code == 200
        assert response.json() == {"received": True, "scheduled": False}

    def test_missing_event(self, client) -> None:
        response = self.post_signed(client, {"user_id": 42})
        assert response.status_code == 400

    def test_invalid_json(self, client) -> None:
        response = client.post(self.URL, content=b"{not json", headers={"Content-Type": "application/json"})
        assert response.status_code == 400

    def test_unknown_polar_user_is_acknowledged(self, client) -> None:
        response = self.post_signed(client, {"event": "SLEEP", "user_id": 999})

        assert response.status_code == 200
        assert response.json() == {"received": True, "scheduled": False}

    def test_sync_runs_after_response(self, client, store, linked_user) -> None:
        response = self.post_signed(
            client,
            {
                "event": "EXERCISE",
                "user_id": 42,
                "entity_id": "abc",
                "timestamp": "2026-02-23T10:00:00Z",
            },
        )

        assert response.status_code == 200
        assert response.json() == {"received": True, "scheduled": True}
        summary = fetch(store, f"users/{linked_user}/polarData/syncSummary/all/2026-02-23")
        assert summary is not None
        assert summary["failed"] == 0


# ---------------------------------------------------------------------------
# Debug console
# ---------------------------------------------------------------------------


class TestDebugLogs:
    def test_recent_lines(self, client) -> None:
        logging.getLogger("questfit.tests").warning("hello from %s", "test")

        response = client.get(f"{API}/debug/logs", params={"limit": 5})

        assert response.status_code == 200
        messages = [line["message"] for line in response.json()["lines"]]
        assert "hello from test" in messages

    def test_hidden_without_debug(self, client, settings) -> None:
        settings.debug = False
        assert client.get(f"{API}/debug/logs").status_code == 404
