"""Polar webhook payload handling: signature verification and event parsing.

Polar signs each delivery with ``Polar-Webhook-Signature``: the hex
HMAC-SHA256 of the raw request body, keyed with the ``signature_secret_key``
returned when the webhook was created.  Ping deliveries (sent once while the
webhook is being created) carry ``{"ping": ...}`` and are not signed.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import date, datetime, timezone

#: Events that map to a data category we sync.
SYNC_EVENTS = frozenset({"EXERCISE", "SLEEP", "ACTIVITY_SUMMARY"})


@dataclass(frozen=True)
class WebhookEvent:
    """One Polar webhook notification."""

    event: str
    polar_user_id: str
    entity_id: str | None = None
    timestamp: str | None = None
    url: str | None = None

    @property
    def event_date(self) -> date:
        """Calendar date the notification refers to (UTC today if absent or unparseable)."""
        if self.timestamp:
            try:
                return datetime.fromisoformat(self.timestamp.replace("Z", "+00:00")).date()
            except ValueError:
                pass
        return datetime.now(timezone.utc).date()


def compute_signature(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Constant-time comparison of the delivered and expected signatures."""
    return hmac.compare_digest(compute_signature(payload, secret), signature.strip().lower())


def is_ping(body: dict) -> bool:
    return bool(body.get("ping"))


def parse_event(body: dict) -> WebhookEvent | None:
    """Build a WebhookEvent, or None when the payload lacks event/user_id."""
    event = body.get("event")
    user_id = body.get("user_id")
    if not event or user_id is None:
        return None
    entity_id = body.get("entity_id")
    return WebhookEvent(
        event=str(event),
        polar_user_id=str(user_id),
        entity_id=str(entity_id) if entity_id is not None else None,
        timestamp=body.get("timestamp"),
        url=body.get("url"),
    )
