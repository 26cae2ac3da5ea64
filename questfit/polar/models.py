"""Data models for the Polar Accesslink integration.

These dataclasses are the typed surface between the HTTP client, the sync
orchestrator, the reconciler and the routers.  Vendor payloads themselves stay
as plain dicts; they are filtered and persisted, never normalized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

ACTIVITIES = "activities"
SLEEP = "sleep"
NIGHTLY_RECHARGE = "nightlyRecharge"
CONTINUOUS_HEART_RATE = "continuousHeartRate"
CARDIO_LOAD = "cardioLoad"
EXERCISES = "exercises"
PHYSICAL_INFO = "physicalInfo"

#: Categories synced per date by the orchestrator, in fetch order.
DAILY_CATEGORIES: tuple[str, ...] = (
    ACTIVITIES,
    SLEEP,
    NIGHTLY_RECHARGE,
    CONTINUOUS_HEART_RATE,
    CARDIO_LOAD,
    EXERCISES,
)

#: Every category that may appear under users/{id}/polarData.
ALL_CATEGORIES: tuple[str, ...] = DAILY_CATEGORIES + (PHYSICAL_INFO,)


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string (the ``syncedAt`` format)."""
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# OAuth / account linking
# ---------------------------------------------------------------------------


@dataclass
class PolarTokens:
    """Token response from the Polar OAuth2 code exchange.

    Attributes:
        access_token:  Opaque bearer token; Polar tokens do not expire in
                       practice and there is no refresh token.
        token_type:    Typically "bearer".
        expires_in:    Lifetime in seconds, if the vendor reported one.
        polar_user_id: ``x_user_id`` from the token response.
        linked_at:     UTC timestamp of the exchange.
    """

    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None
    polar_user_id: str | None = None
    linked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class LinkedAccount:
    """A QuestFit user linked to a Polar account.

    Attributes:
        user_id:        QuestFit user id (document id under ``users``).
        polar_user_id:  Polar Accesslink user id.
        access_token:   Polar bearer token.
        consent_given:  Whether the user accepted the data-sharing consent.
        last_sync:      ISO timestamp of the last completed sync, if any.
    """

    user_id: str
    polar_user_id: str
    access_token: str
    consent_given: bool = False
    last_sync: str | None = None


# ---------------------------------------------------------------------------
# Idempotent operation results
# ---------------------------------------------------------------------------


@dataclass
class RegistrationResult:
    """Outcome of ``POST /users``.  409 maps to ``already_registered``."""

    already_registered: bool = False
    data: dict[str, Any] = field(default_factory=dict)

    def to_response(self) -> dict[str, Any]:
        if self.already_registered:
            return {"success": True, "alreadyRegistered": True}
        return {"success": True, "data": self.data}


@dataclass
class WebhookResult:
    """Outcome of ``POST /webhooks``.  409 maps to ``already_exists``."""

    already_exists: bool = False
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def signature_secret(self) -> str | None:
        return (self.data.get("data") or {}).get("signature_secret_key")


@dataclass
class WebhookDeletion:
    """Outcome of deleting the (single) registered webhook."""

    found: bool
    webhook_id: str | None = None


# ---------------------------------------------------------------------------
# Physical-information transactions
# ---------------------------------------------------------------------------


@dataclass
class PhysicalInfoTransaction:
    """An open physical-information transaction on the Polar side."""

    transaction_id: str
    resource_uri: str
    entries: list[dict[str, Any]] = field(default_factory=list)
