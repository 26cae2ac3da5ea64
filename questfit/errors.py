"""Exception types shared across the QuestFit backend.

Vendor "no data" conditions (404 on a daily fetch, 204 on transaction
creation) and "already exists" conditions (409) are NOT exceptions at the
service boundary; the client and orchestrator map them to explicit result
values.  Everything here represents a genuine failure that a caller must
decide how to handle.
"""

from __future__ import annotations

from typing import Any


class QuestFitError(Exception):
    """Base class for all QuestFit errors."""


class MissingCredentialsError(QuestFitError):
    """Raised when a user has no linked Polar account (token or user id absent).

    Fatal for that user only; batch jobs record it and move on.
    """

    def __init__(self, user_id: str, missing: list[str]) -> None:
        self.user_id = user_id
        self.missing = missing
        super().__init__(
            f"User {user_id} does not have Polar credentials linked "
            f"(missing: {', '.join(missing)})"
        )


class PolarAPIError(QuestFitError):
    """A non-2xx response from Polar Accesslink.

    Attributes:
        status_code: HTTP status returned by the vendor.
        body:        Parsed JSON body, or raw text when the body is not JSON.
        url:         Request URL, for logging.
    """

    def __init__(self, status_code: int, body: Any = None, url: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"Polar API returned {status_code} for {url or 'request'}")


class PolarNotFoundError(PolarAPIError):
    """404 from Polar, usually "no data for this date"."""


class ReconciliationError(QuestFitError):
    """Physical-info reconciliation aborted before the commit step.

    Attributes:
        state:          Last state reached before the failure.
        transaction_id: Open vendor transaction (left uncommitted).
    """

    def __init__(self, state: str, transaction_id: str | None, cause: Exception) -> None:
        self.state = state
        self.transaction_id = transaction_id
        self.cause = cause
        super().__init__(
            f"Physical info reconciliation failed in state {state}: {cause}"
        )


class RewardNotRedeemableError(QuestFitError):
    """The user does not have enough XP, or the reward id is unknown."""
