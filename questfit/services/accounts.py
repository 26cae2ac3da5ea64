"""Linked Polar accounts stored on the user document.

Field names on ``users/{userId}`` are shared with the mobile client:
``polarAccessToken``, ``polarUserId``, ``polarTokenType``, ``polarLinkedAt``,
``consentGiven``, ``lastSync``.
"""

from __future__ import annotations

import logging

from questfit.errors import MissingCredentialsError
from questfit.polar.client import PolarClient
from questfit.polar.models import LinkedAccount, PolarTokens, utc_now_iso
from questfit.store import DocumentStore
from questfit.store.paths import USERS, user_doc

logger = logging.getLogger("questfit.services.accounts")

_TOKEN_FIELDS = ["polarAccessToken", "polarUserId", "polarTokenType", "polarLinkedAt"]


class AccountRepository:
    """Read and write the Polar link on user documents."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get_linked_account(self, user_id: str) -> LinkedAccount:
        """Resolve credentials for a user.

        Raises:
            MissingCredentialsError: If the user document is missing or lacks
                either the access token or the Polar user id.
        """
        data = await self._store.get(user_doc(user_id))
        if data is None:
            raise MissingCredentialsError(user_id, ["polarAccessToken", "polarUserId"])
        return _to_account(user_id, data)

    async def list_linked_user_ids(self) -> list[str]:
        """Ids of every user holding a Polar access token."""
        docs = await self._store.list_documents(USERS)
        return [doc_id for doc_id, data in docs if data.get("polarAccessToken")]

    async def find_by_polar_user_id(self, polar_user_id: str) -> LinkedAccount | None:
        docs = await self._store.list_documents(USERS)
        for doc_id, data in docs:
            if str(data.get("polarUserId", "")) == polar_user_id and data.get("polarAccessToken"):
                return _to_account(doc_id, data)
        return None

    async def link_account(
        self, user_id: str, tokens: PolarTokens, consent_given: bool = True
    ) -> LinkedAccount:
        """Store a freshly exchanged token on the user document."""
        if not tokens.polar_user_id:
            raise MissingCredentialsError(user_id, ["polarUserId"])
        await self._store.set(
            user_doc(user_id),
            {
                "polarAccessToken": tokens.access_token,
                "polarUserId": tokens.polar_user_id,
                "polarTokenType": tokens.token_type,
                "polarLinkedAt": tokens.linked_at.isoformat(),
                "consentGiven": consent_given,
            },
            merge=True,
        )
        logger.info("Linked Polar user %s to %s", tokens.polar_user_id, user_id)
        return LinkedAccount(
            user_id=user_id,
            polar_user_id=tokens.polar_user_id,
            access_token=tokens.access_token,
            consent_given=consent_given,
        )

    async def unlink_account(self, user_id: str) -> None:
        await self._store.delete_fields(user_doc(user_id), _TOKEN_FIELDS)
        logger.info("Removed Polar link for %s", user_id)

    async def mark_synced(self, user_id: str, synced_at: str | None = None) -> str:
        stamp = synced_at or utc_now_iso()
        await self._store.set(user_doc(user_id), {"lastSync": stamp}, merge=True)
        return stamp


async def disconnect_account(
    accounts: AccountRepository, client: PolarClient, user_id: str
) -> LinkedAccount:
    """Delete the Accesslink user, then drop the local token.

    The local link is only removed once Polar confirms the deletion, so a
    failed call leaves the account usable and retryable.
    """
    account = await accounts.get_linked_account(user_id)
    await client.delete_user(account.access_token, account.polar_user_id)
    await accounts.unlink_account(user_id)
    return account


def _to_account(user_id: str, data: dict) -> LinkedAccount:
    missing = [f for f in ("polarAccessToken", "polarUserId") if not data.get(f)]
    if missing:
        raise MissingCredentialsError(user_id, missing)
    return LinkedAccount(
        user_id=user_id,
        polar_user_id=str(data["polarUserId"]),
        access_token=data["polarAccessToken"],
        consent_given=bool(data.get("consentGiven", False)),
        last_sync=data.get("lastSync"),
    )
