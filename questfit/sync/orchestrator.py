"""Per-user, per-date Polar sync.

For one linked account and one target date the orchestrator walks the daily
categories in a fixed order, fetches each from Accesslink, strips every field
that is not on the category allow-list, and writes the result to
``users/{userId}/polarData/{category}/all/{date}``.

Each category ends in exactly one outcome:

    found    data fetched and persisted
    missing  Polar answered 404 (or an empty body): nothing recorded that day
    error    any other vendor or transport failure

A category failure never aborts the remaining categories.  Only a user with
no linked credentials fails the whole call (``MissingCredentialsError``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable

import httpx

from questfit.errors import PolarAPIError, PolarNotFoundError
from questfit.polar.client import PolarClient
from questfit.polar.models import (
    ACTIVITIES,
    CARDIO_LOAD,
    CONTINUOUS_HEART_RATE,
    DAILY_CATEGORIES,
    EXERCISES,
    NIGHTLY_RECHARGE,
    SLEEP,
    LinkedAccount,
    utc_now_iso,
)
from questfit.services.accounts import AccountRepository
from questfit.store import DocumentStore
from questfit.store.paths import SYNC_SUMMARY, polar_record
from questfit.sync.config_loader import SyncConfig

logger = logging.getLogger("questfit.sync.orchestrator")

FOUND = "found"
MISSING = "missing"
ERROR = "error"


@dataclass
class SyncSummary:
    """Outcome of syncing one user for one date.

    Attributes:
        user_id:        Internal user id.
        date:           Target date.
        per_category:   'found', 'missing' or 'error' per category.
        errors:         ``{category, message, status}`` entries, one per
                        failed category or failed exercise detail fetch.
        items_stored:   Number of category documents written.
        exercise_count: Exercises stored for the date.
        synced_at:      ISO-8601 UTC completion time.
    """

    user_id: str
    date: date
    per_category: dict[str, str] = field(default_factory=dict)
    errors: list[dict[str, Any]] = field(default_factory=list)
    items_stored: int = 0
    exercise_count: int = 0
    synced_at: str = field(default_factory=utc_now_iso)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.per_category.values() if outcome == ERROR)

    @property
    def successful(self) -> int:
        return sum(1 for outcome in self.per_category.values() if outcome != ERROR)

    @property
    def total(self) -> int:
        return self.successful + self.failed

    def has(self, category: str) -> bool:
        return self.per_category.get(category) == FOUND

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "date": self.date.isoformat(),
            "syncedAt": self.synced_at,
            "perCategory": dict(self.per_category),
            "errors": list(self.errors),
            "itemsStored": self.items_stored,
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
        }


Fetcher = Callable[[LinkedAccount, date, SyncSummary], Awaitable[dict | None]]


class SyncOrchestrator:
    """Fetch, filter and persist one day of Polar data for a user.

    Usage::

        orchestrator = SyncOrchestrator(client, store, accounts, get_sync_config())
        summary = await orchestrator.sync_user("uid-123", date(2024, 5, 1))
    """

    def __init__(
        self,
        client: PolarClient,
        store: DocumentStore,
        accounts: AccountRepository,
        config: SyncConfig,
        categories: tuple[str, ...] = DAILY_CATEGORIES,
    ) -> None:
        self._client = client
        self._store = store
        self._accounts = accounts
        self._config = config
        self._categories = categories
        self._fetchers: dict[str, Fetcher] = {
            ACTIVITIES: self._fetch_activities,
            SLEEP: self._fetch_sleep,
            NIGHTLY_RECHARGE: self._fetch_nightly_recharge,
            CONTINUOUS_HEART_RATE: self._fetch_continuous_heart_rate,
            CARDIO_LOAD: self._fetch_cardio_load,
            EXERCISES: self._fetch_exercises,
        }

    async def sync_user(self, user_id: str, day: date | None = None) -> SyncSummary:
        """Resolve credentials for ``user_id`` and sync ``day`` (UTC today by default).

        Raises:
            MissingCredentialsError: The user has no linked Polar account.
        """
        account = await self._accounts.get_linked_account(user_id)
        return await self.sync_account(account, day)

    async def sync_account(self, account: LinkedAccount, day: date | None = None) -> SyncSummary:
        target = day or datetime.now(timezone.utc).date()
        summary = SyncSummary(user_id=account.user_id, date=target)
        logger.info("Syncing %s for %s", account.user_id, target.isoformat())

        for category in self._categories:
            fetch = self._fetchers[category]
            try:
                document = await fetch(account, target, summary)
            except PolarNotFoundError:
                summary.per_category[category] = MISSING
                continue
            except PolarAPIError as exc:
                logger.warning(
                    "Polar %s fetch failed for %s: %s", category, account.user_id, exc
                )
                summary.per_category[category] = ERROR
                summary.errors.append(
                    {"category": category, "message": str(exc), "status": exc.status_code}
                )
                continue
            except httpx.HTTPError as exc:
                logger.warning(
                    "Transport error fetching %s for %s: %s", category, account.user_id, exc
                )
                summary.per_category[category] = ERROR
                summary.errors.append({"category": category, "message": str(exc), "status": None})
                continue

            if document is None:
                summary.per_category[category] = MISSING
                continue

            document["date"] = target.isoformat()
            document["syncedAt"] = utc_now_iso()
            await self._store.set(
                polar_record(account.user_id, category, target.isoformat()), document
            )
            summary.per_category[category] = FOUND
            summary.items_stored += 1

        summary.synced_at = utc_now_iso()
        await self._store.set(
            polar_record(account.user_id, SYNC_SUMMARY, target.isoformat()), summary.to_dict()
        )
        await self._accounts.mark_synced(account.user_id, summary.synced_at)

        logger.info(
            "Sync complete for %s on %s: %d found, %d missing, %d error",
            account.user_id,
            target.isoformat(),
            summary.items_stored,
            sum(1 for v in summary.per_category.values() if v == MISSING),
            summary.failed,
        )
        return summary

    # ------------------------------------------------------------------
    # Category fetchers: return the document to store, or None for missing
    # ------------------------------------------------------------------

    def _filter_payload(self, category: str, payload: dict | None) -> dict | None:
        if not payload:
            return None
        return self._config.filter(category, payload)

    async def _fetch_activities(self, account: LinkedAccount, day: date, _: SyncSummary) -> dict | None:
        payload = await self._client.get_daily_activity(account.access_token, day)
        return self._filter_payload(ACTIVITIES, payload)

    async def _fetch_sleep(self, account: LinkedAccount, day: date, _: SyncSummary) -> dict | None:
        payload = await self._client.get_sleep(account.access_token, day)
        return self._filter_payload(SLEEP, payload)

    async def _fetch_nightly_recharge(
        self, account: LinkedAccount, day: date, _: SyncSummary
    ) -> dict | None:
        payload = await self._client.get_nightly_recharge(account.access_token, day)
        return self._filter_payload(NIGHTLY_RECHARGE, payload)

    async def _fetch_continuous_heart_rate(
        self, account: LinkedAccount, day: date, _: SyncSummary
    ) -> dict | None:
        payload = await self._client.get_continuous_heart_rate(account.access_token, day)
        return self._filter_payload(CONTINUOUS_HEART_RATE, payload)

    async def _fetch_cardio_load(
        self, account: LinkedAccount, day: date, _: SyncSummary
    ) -> dict | None:
        # the period endpoint counts back from today (UTC); reach far enough to cover ``day``
        days = max(1, (datetime.now(timezone.utc).date() - day).days + 1)
        items = await self._client.get_cardio_load(account.access_token, days=days)
        match = next(
            (item for item in items or [] if str(item.get("date", ""))[:10] == day.isoformat()),
            None,
        )
        if match is None:
            return None
        return {"data": self._config.filter(CARDIO_LOAD, match)}

    async def _fetch_exercises(
        self, account: LinkedAccount, day: date, summary: SyncSummary
    ) -> dict | None:
        listing = await self._client.list_exercises(account.access_token)
        wanted = [
            ex for ex in listing if str(ex.get("upload_time", ""))[:10] == day.isoformat()
        ]
        if not wanted:
            return None

        details: list[dict] = []
        item_errors: list[dict[str, Any]] = []
        last_exc: Exception | None = None
        for ex in wanted:
            exercise_id = str(ex.get("id", ""))
            try:
                detail = await self._client.get_exercise(account.access_token, exercise_id)
            except (PolarAPIError, httpx.HTTPError) as exc:
                logger.warning(
                    "Exercise %s fetch failed for %s: %s", exercise_id, account.user_id, exc
                )
                item_errors.append(
                    {
                        "category": EXERCISES,
                        "message": f"exercise {exercise_id}: {exc}",
                        "status": getattr(exc, "status_code", None),
                    }
                )
                last_exc = exc
                continue
            details.append(self._config.filter(EXERCISES, detail or ex))

        if not details and last_exc is not None:
            # every detail fetch failed: the last failure classifies the category
            raise last_exc

        summary.errors.extend(item_errors)
        summary.exercise_count = len(details)
        return {"exercises": details, "count": len(details)}
