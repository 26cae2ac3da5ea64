"""Polar Accesslink v3 HTTP client.

A thin async wrapper: every public method issues exactly one HTTP call
(``delete_webhook`` issues a list call first when no id is given).  No
retries and no backoff; a vendor failure surfaces immediately as
:class:`~questfit.errors.PolarAPIError` carrying the vendor status and body.

Auth schemes:
    Bearer    per-user endpoints (daily data, exercises, physical info, users/{id})
    Basic     client-credential endpoints (token exchange, webhooks)

API base: https://www.polaraccesslink.com/v3

Endpoints used:
    POST   /users                                             register user
    GET    /users/{user-id}                                   user physical data
    DELETE /users/{user-id}                                   disconnect
    GET    /users/activities/{date}                           daily activity
    GET    /users/sleep/{date}                                sleep
    GET    /users/nightly-recharge/{date}                     nightly recharge
    GET    /users/continuous-heart-rate/{date}                continuous HR
    GET    /users/cardio-load/period/days/{n}                 cardio load
    GET    /exercises, /exercises/{id}                        exercises
    POST   /users/{user-id}/physical-information-transactions
    PUT    /users/{user-id}/physical-information-transactions/{transaction-id}
    POST   /webhooks, GET /webhooks, DELETE /webhooks/{id}
"""

from __future__ import annotations

import base64
import logging
from datetime import date
from typing import Any

import httpx

from questfit.config import Settings, get_settings
from questfit.errors import PolarAPIError, PolarNotFoundError
from questfit.polar.models import (
    PhysicalInfoTransaction,
    PolarTokens,
    RegistrationResult,
    WebhookDeletion,
    WebhookResult,
)

logger = logging.getLogger("questfit.polar")

POLAR_API_BASE = "https://www.polaraccesslink.com/v3"
POLAR_AUTH_URL = "https://flow.polar.com/oauth2/authorization"
POLAR_TOKEN_URL = "https://polarremote.com/v2/oauth2/token"


class PolarClient:
    """Async client for Polar Accesslink.

    The client owns an ``httpx.AsyncClient`` unless one is injected (tests
    inject one built on ``httpx.MockTransport``).  Call :meth:`aclose` at
    shutdown.
    """

    def __init__(
        self,
        client_id: str = "",
        client_secret: str = "",
        redirect_uri: str = "",
        scope: str = "accesslink.read_all",
        http_client: httpx.AsyncClient | None = None,
        api_base: str = POLAR_API_BASE,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redirect_uri = redirect_uri
        self._scope = scope
        self._api_base = api_base.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient()

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, http_client: httpx.AsyncClient | None = None
    ) -> "PolarClient":
        s = settings or get_settings()
        return cls(
            client_id=s.polar_client_id,
            client_secret=s.polar_client_secret,
            redirect_uri=s.polar_redirect_uri,
            scope=s.polar_scope,
            http_client=http_client,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # OAuth
    # ------------------------------------------------------------------

    def authorization_url(self, redirect_uri: str | None = None) -> str:
        """Build the Polar Flow authorization URL.

        Polar expects ``redirect_uri`` verbatim (not percent-encoded) and it
        must match the one registered for the client.
        """
        return (
            f"{POLAR_AUTH_URL}?response_type=code&client_id={self._client_id}"
            f"&redirect_uri={redirect_uri or self._redirect_uri}&scope={self._scope}"
        )

    async def exchange_code(self, code: str, redirect_uri: str | None = None) -> PolarTokens:
        """Exchange an authorization code for an access token.

        Args:
            code:         Authorization code from the OAuth redirect.
            redirect_uri: Must equal the uri used for the authorization step.

        Returns:
            PolarTokens including the Polar user id (``x_user_id``).
        """
        logger.info("Polar: exchanging authorization code")
        response = await self._request(
            "POST",
            POLAR_TOKEN_URL,
            headers={
                **self._basic_headers(),
                "Accept": "application/json;charset=UTF-8",
            },
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri or self._redirect_uri,
            },
        )
        data = self._parse_json(response)
        if not data.get("access_token"):
            raise PolarAPIError(response.status_code, data, POLAR_TOKEN_URL)

        user_id = data.get("x_user_id")
        return PolarTokens(
            access_token=data["access_token"],
            token_type=data.get("token_type", "bearer"),
            expires_in=data.get("expires_in"),
            polar_user_id=str(user_id) if user_id is not None else None,
        )

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def register_user(self, access_token: str, member_id: str) -> RegistrationResult:
        """Register a QuestFit user with Accesslink.  Idempotent: 409 is success."""
        try:
            response = await self._request(
                "POST",
                self._url("/users"),
                headers=self._bearer_headers(access_token),
                json={"member-id": member_id},
            )
        except PolarAPIError as exc:
            if exc.status_code == 409:
                logger.info("Polar: member %s already registered", member_id)
                return RegistrationResult(already_registered=True)
            raise
        return RegistrationResult(data=self._json_or_empty(response))

    async def get_user(self, access_token: str, polar_user_id: str) -> dict[str, Any]:
        """Fetch the user's basic and physical information."""
        response = await self._request(
            "GET",
            self._url(f"/users/{polar_user_id}"),
            headers=self._bearer_headers(access_token),
        )
        return self._parse_json(response)

    async def delete_user(self, access_token: str, polar_user_id: str) -> None:
        """De-register the user from Accesslink (revokes the link vendor-side)."""
        await self._request(
            "DELETE",
            self._url(f"/users/{polar_user_id}"),
            headers=self._bearer_headers(access_token),
        )
        logger.info("Polar: deleted Accesslink user %s", polar_user_id)

    # ------------------------------------------------------------------
    # Daily data
    # ------------------------------------------------------------------

    async def get_daily_activity(self, access_token: str, day: date) -> dict[str, Any]:
        return await self._get_json(f"/users/activities/{day.isoformat()}", access_token)

    async def get_sleep(self, access_token: str, day: date) -> dict[str, Any]:
        return await self._get_json(f"/users/sleep/{day.isoformat()}", access_token)

    async def get_nightly_recharge(self, access_token: str, day: date) -> dict[str, Any]:
        return await self._get_json(f"/users/nightly-recharge/{day.isoformat()}", access_token)

    async def get_continuous_heart_rate(self, access_token: str, day: date) -> dict[str, Any]:
        return await self._get_json(
            f"/users/continuous-heart-rate/{day.isoformat()}", access_token
        )

    async def get_cardio_load(self, access_token: str, days: int = 1) -> list[dict[str, Any]]:
        """Cardio load for the last ``days`` days, most recent first."""
        return await self._get_json(f"/users/cardio-load/period/days/{days}", access_token) or []

    async def list_exercises(self, access_token: str) -> list[dict[str, Any]]:
        """Exercises uploaded in the last 30 days (summary only)."""
        return await self._get_json("/exercises", access_token) or []

    async def get_exercise(
        self, access_token: str, exercise_id: str, samples: bool = True
    ) -> dict[str, Any]:
        params = {"samples": "true"} if samples else None
        return await self._get_json(f"/exercises/{exercise_id}", access_token, params=params)

    # ------------------------------------------------------------------
    # Physical-information transactions
    # ------------------------------------------------------------------

    async def create_physical_info_transaction(
        self, access_token: str, polar_user_id: str
    ) -> PhysicalInfoTransaction | None:
        """Open a physical-information transaction.

        Returns:
            The open transaction, or ``None`` when Polar answers 204
            (no new physical information since the last commit).
        """
        url = self._url(f"/users/{polar_user_id}/physical-information-transactions")
        response = await self._request(
            "POST", url, headers=self._bearer_headers(access_token), json={}
        )
        if response.status_code == 204:
            return None

        data = self._json_or_empty(response)
        transaction_id = data.get("transaction-id")
        resource_uri = data.get("resource-uri")
        if not transaction_id or not resource_uri:
            raise PolarAPIError(response.status_code, data, url)
        return PhysicalInfoTransaction(
            transaction_id=str(transaction_id), resource_uri=resource_uri
        )

    async def list_physical_info_entries(
        self, access_token: str, resource_uri: str
    ) -> list[str]:
        """List the entry URIs contained in an open transaction."""
        response = await self._request(
            "GET", resource_uri, headers=self._bearer_headers(access_token)
        )
        return list(self._json_or_empty(response).get("physical-informations") or [])

    async def get_physical_info(self, access_token: str, entry_uri: str) -> dict[str, Any]:
        response = await self._request(
            "GET", entry_uri, headers=self._bearer_headers(access_token)
        )
        return self._parse_json(response)

    async def commit_physical_info_transaction(
        self, access_token: str, polar_user_id: str, transaction_id: str
    ) -> None:
        """Commit the transaction so its entries are not delivered again."""
        await self._request(
            "PUT",
            self._url(
                f"/users/{polar_user_id}/physical-information-transactions/{transaction_id}"
            ),
            headers=self._bearer_headers(access_token),
            json={},
        )

    # ------------------------------------------------------------------
    # Webhooks (client credentials)
    # ------------------------------------------------------------------

    async def create_webhook(self, events: list[str], url: str) -> WebhookResult:
        """Create the client webhook.  Idempotent: 409 is success."""
        try:
            response = await self._request(
                "POST",
                self._url("/webhooks"),
                headers={**self._basic_headers(), "Accept": "application/json"},
                json={"events": events, "url": url},
            )
        except PolarAPIError as exc:
            if exc.status_code == 409:
                logger.info("Polar: webhook already exists")
                return WebhookResult(already_exists=True)
            raise
        data = self._json_or_empty(response)
        logger.info("Polar: webhook created for events %s", events)
        return WebhookResult(data=data)

    async def list_webhooks(self) -> list[dict[str, Any]]:
        response = await self._request(
            "GET",
            self._url("/webhooks"),
            headers={**self._basic_headers(), "Accept": "application/json"},
        )
        return list(self._json_or_empty(response).get("data") or [])

    async def delete_webhook(self, webhook_id: str | None = None) -> WebhookDeletion:
        """Delete a webhook; without an id, the first registered one.

        A client has at most one webhook in practice.  404 from either call,
        or an empty list, maps to ``WebhookDeletion(found=False)``.
        """
        try:
            if webhook_id is None:
                hooks = await self.list_webhooks()
                if not hooks:
                    return WebhookDeletion(found=False)
                webhook_id = str(hooks[0]["id"])

            await self._request(
                "DELETE",
                self._url(f"/webhooks/{webhook_id}"),
                headers=self._basic_headers(),
            )
        except PolarNotFoundError:
            return WebhookDeletion(found=False, webhook_id=webhook_id)

        logger.info("Polar: webhook %s deleted", webhook_id)
        return WebhookDeletion(found=True, webhook_id=webhook_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self._api_base}{path}"

    @staticmethod
    def _bearer_headers(access_token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    def _basic_headers(self) -> dict[str, str]:
        raw = f"{self._client_id}:{self._client_secret}".encode()
        return {"Authorization": f"Basic {base64.b64encode(raw).decode()}"}

    async def _get_json(
        self, path: str, access_token: str, params: dict[str, str] | None = None
    ) -> Any:
        response = await self._request(
            "GET", self._url(path), headers=self._bearer_headers(access_token), params=params
        )
        if response.status_code == 204 or not response.content:
            return None
        return self._parse_json(response)

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Issue one request and raise on any non-2xx status.

        Raises:
            PolarNotFoundError: On 404.
            PolarAPIError:      On every other non-2xx response.
            httpx.HTTPError:    On transport failures (propagated as-is).
        """
        response = await self._http.request(method, url, **kwargs)
        if response.is_success:
            return response

        body = self._error_body(response)
        logger.debug("Polar %s %s -> %d: %r", method, url, response.status_code, body)
        if response.status_code == 404:
            raise PolarNotFoundError(404, body, url)
        raise PolarAPIError(response.status_code, body, url)

    @classmethod
    def _json_or_empty(cls, response: httpx.Response) -> dict[str, Any]:
        if not response.content:
            return {}
        return cls._parse_json(response)

    @staticmethod
    def _parse_json(response: httpx.Response) -> Any:
        """Decode a 2xx body.

        Raises:
            PolarAPIError: The body is not JSON (an HTML gateway page, say).
                Carries the response status and raw text.
        """
        try:
            return response.json()
        except ValueError as exc:
            url = str(response.request.url)
            logger.debug("Polar %s returned a non-JSON body: %r", url, response.text[:200])
            raise PolarAPIError(response.status_code, response.text, url) from exc

    @staticmethod
    def _error_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text
