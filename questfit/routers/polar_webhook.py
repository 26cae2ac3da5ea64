"""Polar webhook receiver.

Polar posts EXERCISE, SLEEP and ACTIVITY_SUMMARY notifications here.  Each
recognized event schedules a background sync of the event's date for the
linked user; the response is sent before that sync runs.
"""

from __future__ import annotations

import json
import logging
from datetime import date

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request

from questfit.dependencies import Session, SessionContext
from questfit.polar.models import LinkedAccount
from questfit.polar.webhooks import SYNC_EVENTS, is_ping, parse_event, verify_signature

router = APIRouter(prefix="/polar", tags=["webhooks"])
logger = logging.getLogger("questfit.webhooks")


async def _sync_in_background(session: SessionContext, account: LinkedAccount, day: date) -> None:
    try:
        await session.orchestrator().sync_account(account, day)
    except Exception:
        logger.exception("Webhook-triggered sync failed for %s", account.user_id)


@router.post("/webhook")
async def polar_webhook(
    request: Request,
    session: Session,
    background: BackgroundTasks,
    signature: str | None = Header(default=None, alias="Polar-Webhook-Signature"),
) -> dict:
    raw = await request.body()
    try:
        body = json.loads(raw or b"{}")
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    if is_ping(body):
        logger.info("Polar webhook ping received")
        return {"message": "Pong"}

    secret = session.settings.polar_webhook_signature_secret
    if secret and (not signature or not verify_signature(raw, signature, secret)):
        logger.warning(
            "Rejected Polar webhook with %s signature", "invalid" if signature else "missing"
        )
        raise HTTPException(status_code=401, detail="Invalid signature")

    event = parse_event(body)
    if event is None:
        raise HTTPException(status_code=400, detail="Missing event or user_id")

    logger.info("Polar webhook %s for Polar user %s", event.event, event.polar_user_id)
    if event.event not in SYNC_EVENTS:
        return {"received": True, "scheduled": False}

    account = await session.accounts.find_by_polar_user_id(event.polar_user_id)
    if account is None:
        logger.warning("No linked account for Polar user %s", event.polar_user_id)
        return {"received": True, "scheduled": False}

    background.add_task(_sync_in_background, session, account, event.event_date)
    return {"received": True, "scheduled": True}
