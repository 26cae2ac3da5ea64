"""Polar data sync: allow-list config, orchestrator, reconciler, batch job."""

from questfit.sync.config_loader import (
    ConfigValidationError,
    SyncConfig,
    get_sync_config,
    reload_sync_config,
)
from questfit.sync.orchestrator import SyncOrchestrator, SyncSummary
from questfit.sync.reconciler import PhysicalInfoReconciler, ReconcilerState
from questfit.sync.scheduler import BatchSyncResult, DailySyncJob

__all__ = [
    "BatchSyncResult",
    "ConfigValidationError",
    "DailySyncJob",
    "PhysicalInfoReconciler",
    "ReconcilerState",
    "SyncConfig",
    "SyncOrchestrator",
    "SyncSummary",
    "get_sync_config",
    "reload_sync_config",
]
