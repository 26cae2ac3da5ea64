"""Physical-information transaction reconciler.

Polar delivers physical information (weight, height, heart-rate thresholds,
VO2max) through a short-lived transaction:

    NO_TRANSACTION --create--> TRANSACTION_OPEN --list--> INFO_LISTED
        --fetch each--> ALL_FETCHED --persist, commit--> COMMITTED

``create`` answering 204 ends in ``NO_NEW_DATA`` with nothing to commit.
Entries are fetched one at a time and stored before the commit is sent, so
a crash between persistence and commit re-delivers the same entries on the
next run rather than losing them.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from questfit.errors import QuestFitError, ReconciliationError
from questfit.polar.client import PolarClient
from questfit.polar.models import PHYSICAL_INFO, LinkedAccount, utc_now_iso
from questfit.store import DocumentStore
from questfit.store.paths import polar_collection
from questfit.sync.config_loader import SyncConfig

logger = logging.getLogger("questfit.sync.reconciler")


class ReconcilerState(str, enum.Enum):
    NO_TRANSACTION = "NO_TRANSACTION"
    TRANSACTION_OPEN = "TRANSACTION_OPEN"
    INFO_LISTED = "INFO_LISTED"
    ALL_FETCHED = "ALL_FETCHED"
    COMMITTED = "COMMITTED"
    NO_NEW_DATA = "NO_NEW_DATA"


@dataclass
class ReconciliationResult:
    state: ReconcilerState
    transaction_id: str | None = None
    entries: list[dict[str, Any]] = field(default_factory=list)
    stored_ids: list[str] = field(default_factory=list)

    def to_response(self) -> dict[str, Any]:
        return {"data": self.entries}


class PhysicalInfoReconciler:
    """Run the create, list, fetch, persist and commit protocol for one user.

    Args:
        client: Polar API client.
        store:  Where fetched entries are written.  When None, entries are
                only returned to the caller.
        config: Allow-list applied to stored entries.
    """

    def __init__(
        self,
        client: PolarClient,
        store: DocumentStore | None = None,
        config: SyncConfig | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._config = config

    async def reconcile(self, account: LinkedAccount) -> ReconciliationResult:
        """Pull and commit every pending physical-information entry.

        Returns:
            ReconciliationResult in state COMMITTED or NO_NEW_DATA.

        Raises:
            ReconciliationError: A vendor or transport call failed.  The
                ``state`` attribute names the last state reached; when it is
                before COMMITTED the transaction was left uncommitted.
        """
        token = account.access_token
        state = ReconcilerState.NO_TRANSACTION
        transaction_id: str | None = None

        try:
            transaction = await self._client.create_physical_info_transaction(
                token, account.polar_user_id
            )
            if transaction is None:
                logger.info("No new physical info for %s", account.user_id)
                return ReconciliationResult(state=ReconcilerState.NO_NEW_DATA)

            transaction_id = transaction.transaction_id
            state = ReconcilerState.TRANSACTION_OPEN

            uris = await self._client.list_physical_info_entries(token, transaction.resource_uri)
            state = ReconcilerState.INFO_LISTED

            entries: list[dict[str, Any]] = []
            for uri in uris:
                entries.append(await self._client.get_physical_info(token, uri))
            transaction.entries = entries
            state = ReconcilerState.ALL_FETCHED

            stored_ids = await self._persist(account.user_id, transaction_id, entries)

            await self._client.commit_physical_info_transaction(
                token, account.polar_user_id, transaction_id
            )
            state = ReconcilerState.COMMITTED
        except (QuestFitError, httpx.HTTPError) as exc:
            logger.error(
                "Physical info reconciliation for %s failed in %s: %s",
                account.user_id,
                state.value,
                exc,
            )
            raise ReconciliationError(state.value, transaction_id, exc) from exc

        logger.info(
            "Committed physical info transaction %s for %s (%d entries)",
            transaction_id,
            account.user_id,
            len(entries),
        )
        return ReconciliationResult(
            state=state,
            transaction_id=transaction_id,
            entries=entries,
            stored_ids=stored_ids,
        )

    async def _persist(
        self, user_id: str, transaction_id: str, entries: list[dict[str, Any]]
    ) -> list[str]:
        if self._store is None:
            return []
        fetched_at = utc_now_iso()
        collection = polar_collection(user_id, PHYSICAL_INFO)
        ids = []
        for entry in entries:
            body = self._config.filter(PHYSICAL_INFO, entry) if self._config else dict(entry)
            body["fetchedAt"] = fetched_at
            body["transactionId"] = transaction_id
            ids.append(await self._store.add(collection, body))
        return ids
