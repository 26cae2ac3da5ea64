"""Health check endpoint, public and unauthenticated."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from questfit.dependencies import Session
from questfit.store.paths import user_doc

router = APIRouter(tags=["system"])
logger = logging.getLogger("questfit.health")


@router.get("/health")
async def health_check(session: Session) -> dict:
    """Liveness probe.  Also performs a lightweight store read."""
    store_ok = False
    try:
        await session.store.get(user_doc("__health__"))
        store_ok = True
    except Exception as exc:
        logger.warning("Health check store probe failed: %s", exc)

    return {
        "status": "healthy" if store_ok else "degraded",
        "version": session.settings.app_version,
        "environment": session.settings.environment,
        "store": type(session.store).__name__,
        "storeStatus": "connected" if store_ok else "unreachable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
