"""Scheduled daily Polar sync.

The platform scheduler calls this endpoint once a day with
``Authorization: Bearer <CRON_SECRET>``.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Header, HTTPException

from questfit.dependencies import Session

router = APIRouter(prefix="/cron", tags=["cron"])
logger = logging.getLogger("questfit.cron")


@router.api_route("/daily-polar-sync", methods=["GET", "POST"])
async def daily_polar_sync(
    session: Session, authorization: str | None = Header(default=None)
) -> dict:
    secret = session.settings.cron_secret
    if secret and authorization != f"Bearer {secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")

    result = await session.daily_job().run()
    day = result.date.isoformat()
    if result.total == 0:
        return {"message": "No users to sync", "date": day}

    return {
        "message": "Daily sync completed",
        "date": day,
        "results": result.to_dict(),
    }
