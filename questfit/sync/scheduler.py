"""Daily batch sync across every linked user.

Users are processed concurrently up to ``max_concurrent`` at a time;
categories within one user run sequentially inside the orchestrator.  A
user fails only when credentials are missing or the orchestrator raises;
category-level errors are carried in that user's summary.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from questfit.errors import MissingCredentialsError
from questfit.polar.models import ACTIVITIES, NIGHTLY_RECHARGE
from questfit.services.accounts import AccountRepository
from questfit.sync.orchestrator import SyncOrchestrator, SyncSummary

logger = logging.getLogger("questfit.sync.scheduler")


@dataclass
class BatchSyncResult:
    """Aggregate of one batch run.

    Attributes:
        date:       Target date.
        total:      Users attempted.
        successful: Users whose sync completed.
        failed:     Users with missing credentials or an unexpected error.
        synced:     Per-user success entries.
        errors:     Per-user ``{userId, error}`` entries.
    """

    date: date
    total: int = 0
    successful: int = 0
    failed: int = 0
    synced: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "synced": self.synced,
            "errors": self.errors,
        }


def synced_entry(summary: SyncSummary) -> dict[str, Any]:
    return {
        "userId": summary.user_id,
        "date": summary.date.isoformat(),
        "hasActivities": summary.has(ACTIVITIES),
        "hasNightlyRecharge": summary.has(NIGHTLY_RECHARGE),
        "exerciseCount": summary.exercise_count,
        "categoriesFailed": summary.failed,
    }


class DailySyncJob:
    """Sync every user holding a Polar token for one date.

    Usage::

        job = DailySyncJob(orchestrator, accounts, max_concurrent=5)
        result = await job.run()
    """

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        accounts: AccountRepository,
        max_concurrent: int = 5,
    ) -> None:
        self._orchestrator = orchestrator
        self._accounts = accounts
        self._max_concurrent = max_concurrent

    async def run(self, day: date | None = None) -> BatchSyncResult:
        target = day or datetime.now(timezone.utc).date()
        user_ids = await self._accounts.list_linked_user_ids()
        result = BatchSyncResult(date=target, total=len(user_ids))

        if not user_ids:
            logger.info("Daily sync: no users with Polar tokens")
            return result

        logger.info("Daily sync for %s: %d users", target.isoformat(), len(user_ids))
        semaphore = asyncio.Semaphore(self._max_concurrent)
        outcomes = await asyncio.gather(
            *(self._run_user(uid, target, semaphore) for uid in user_ids),
            return_exceptions=True,
        )

        for user_id, outcome in zip(user_ids, outcomes):
            if isinstance(outcome, SyncSummary):
                result.successful += 1
                result.synced.append(synced_entry(outcome))
                continue
            if isinstance(outcome, MissingCredentialsError):
                logger.warning("Skipping %s: %s", user_id, outcome)
            else:
                logger.error("Sync for %s failed with exception: %s", user_id, outcome)
            result.failed += 1
            result.errors.append({"userId": user_id, "error": str(outcome)})

        logger.info(
            "Daily sync complete: %d/%d users succeeded",
            result.successful,
            result.total,
        )
        return result

    async def _run_user(
        self, user_id: str, day: date, semaphore: asyncio.Semaphore
    ) -> SyncSummary:
        async with semaphore:
            return await self._orchestrator.sync_user(user_id, day)
