"""Recent log lines for on-device debugging.  Enabled only when DEBUG is set."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from questfit.dependencies import Session

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/logs")
async def recent_logs(session: Session, limit: int = Query(default=100, ge=1, le=1000)) -> dict:
    if not session.settings.debug:
        raise HTTPException(status_code=404, detail="Not found")
    return {"lines": [line.to_dict() for line in session.console.lines(limit)]}
