"""OAuth redirect bounce for the mobile app.

Polar redirects the browser here after authorization; the handler forwards
the code (or error) to the app's custom URL scheme.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, HTTPException
from fastapi.responses import RedirectResponse

from questfit.dependencies import Session

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("questfit.auth")


@router.get("/mobile-callback")
async def mobile_callback(
    session: Session, code: str | None = None, error: str | None = None
) -> RedirectResponse:
    scheme = session.settings.mobile_redirect_scheme
    if error:
        logger.info("Polar authorization returned error %s", error)
        return RedirectResponse(f"{scheme}?error={quote(error)}", status_code=302)
    if not code:
        raise HTTPException(status_code=400, detail="Missing authorization code")

    logger.info("Redirecting authorization code to mobile app")
    return RedirectResponse(f"{scheme}?code={quote(code)}", status_code=302)
