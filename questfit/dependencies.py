"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from questfit.config import Settings
from questfit.dashboard.service import DashboardService
from questfit.debug_console import ConsoleCapture
from questfit.polar.client import PolarClient
from questfit.services.accounts import AccountRepository
from questfit.store import DocumentStore
from questfit.sync.config_loader import SyncConfig
from questfit.sync.orchestrator import SyncOrchestrator
from questfit.sync.reconciler import PhysicalInfoReconciler
from questfit.sync.scheduler import DailySyncJob


@dataclass(frozen=True)
class SessionContext:
    """Process-wide resources created in the app lifespan.

    Stored on ``app.state.session`` and closed on shutdown.
    """

    settings: Settings
    store: DocumentStore
    polar: PolarClient
    sync_config: SyncConfig
    console: ConsoleCapture

    @property
    def accounts(self) -> AccountRepository:
        return AccountRepository(self.store)

    def orchestrator(self) -> SyncOrchestrator:
        return SyncOrchestrator(self.polar, self.store, self.accounts, self.sync_config)

    def reconciler(self, persist: bool = True) -> PhysicalInfoReconciler:
        if not persist:
            return PhysicalInfoReconciler(self.polar)
        return PhysicalInfoReconciler(self.polar, self.store, self.sync_config)

    def daily_job(self) -> DailySyncJob:
        return DailySyncJob(
            self.orchestrator(),
            self.accounts,
            max_concurrent=self.settings.sync_max_concurrent,
        )

    def dashboard(self) -> DashboardService:
        return DashboardService(self.store)

    async def close(self) -> None:
        await self.polar.aclose()
        await self.store.close()
        self.console.uninstall()


def get_session(request: Request) -> SessionContext:
    session: SessionContext | None = getattr(request.app.state, "session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return session


# Annotated shortcuts for route signatures
Session = Annotated[SessionContext, Depends(get_session)]
