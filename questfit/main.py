"""QuestFit API: FastAPI application entry point.

Run locally:
    uvicorn questfit.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from questfit.config import Settings, get_settings
from questfit.dashboard.service import NotAnInstructorError
from questfit.debug_console import ConsoleCapture
from questfit.dependencies import SessionContext
from questfit.errors import (
    MissingCredentialsError,
    PolarAPIError,
    ReconciliationError,
    RewardNotRedeemableError,
)
from questfit.polar.client import PolarClient
from questfit.routers import auth, cron, dashboard, debug, game, health, polar, polar_webhook
from questfit.store import DocumentStore, open_store
from questfit.sync.config_loader import get_sync_config

# ---------- Logging ----------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("questfit")


# ---------- Session ----------


async def build_session(
    settings: Settings,
    store: DocumentStore | None = None,
    polar_client: PolarClient | None = None,
) -> SessionContext:
    """Create the process-wide resources.  Fails fast on an invalid allow-list."""
    sync_config = get_sync_config()
    console = ConsoleCapture(capacity=settings.debug_log_buffer)
    console.install()
    return SessionContext(
        settings=settings,
        store=store or await open_store(settings),
        polar=polar_client or PolarClient.from_settings(settings),
        sync_config=sync_config,
        console=console,
    )


# ---------- Lifespan ----------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    session: SessionContext | None = getattr(app.state, "session", None)
    settings = session.settings if session else get_settings()
    logging.getLogger("questfit").setLevel(settings.log_level.upper())
    logger.info("Starting QuestFit API v%s [%s]", settings.app_version, settings.environment)

    if session is None:
        app.state.session = await build_session(settings)
    yield
    await app.state.session.close()
    app.state.session = None
    logger.info("QuestFit API shut down")


# ---------- Error translation ----------


def _polar_error_response(exc: PolarAPIError, message: str = "Polar API error") -> JSONResponse:
    status = exc.status_code if exc.status_code >= 400 else 502
    return JSONResponse(status_code=status, content={"error": message, "details": exc.body})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(PolarAPIError)
    async def polar_api_error(request: Request, exc: PolarAPIError) -> JSONResponse:
        logger.warning("Polar API error on %s: %s", request.url.path, exc)
        return _polar_error_response(exc)

    @app.exception_handler(ReconciliationError)
    async def reconciliation_error(request: Request, exc: ReconciliationError) -> JSONResponse:
        if isinstance(exc.cause, PolarAPIError):
            return _polar_error_response(exc.cause, "Failed to sync physical information")
        return JSONResponse(
            status_code=502,
            content={"error": "Failed to sync physical information", "details": str(exc.cause)},
        )

    @app.exception_handler(MissingCredentialsError)
    async def missing_credentials(request: Request, exc: MissingCredentialsError) -> JSONResponse:
        return JSONResponse(
            status_code=400, content={"error": str(exc), "missing": exc.missing}
        )

    @app.exception_handler(RewardNotRedeemableError)
    async def not_redeemable(request: Request, exc: RewardNotRedeemableError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(NotAnInstructorError)
    async def not_instructor(request: Request, exc: NotAnInstructorError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"error": "Instructor access required"})


# ---------- App factory ----------


def create_app(session: SessionContext | None = None) -> FastAPI:
    """Build the app.  Pass ``session`` to run against pre-built resources (tests)."""
    settings = session.settings if session else get_settings()

    app = FastAPI(
        title="QuestFit API",
        description="Polar Accesslink sync, gamification and instructor dashboard backend.",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.session = session

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    # ---------- Health check (outside v1 prefix, always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    v1_prefix = "/api/v1"

    app.include_router(polar.router, prefix=v1_prefix)
    app.include_router(polar_webhook.router, prefix=v1_prefix)
    app.include_router(auth.router, prefix=v1_prefix)
    app.include_router(cron.router, prefix=v1_prefix)
    app.include_router(game.router, prefix=v1_prefix)
    app.include_router(dashboard.router, prefix=v1_prefix)
    app.include_router(debug.router, prefix=v1_prefix)

    return app


app = create_app()
