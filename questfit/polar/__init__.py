"""Polar Accesslink integration.

Modules:
    client     async HTTP client for Accesslink v3 and the OAuth token endpoint
    models     categories, tokens, linked accounts, idempotent operation results
    webhooks   webhook signature verification and event parsing
"""

from questfit.polar.client import PolarClient
from questfit.polar.models import (
    ALL_CATEGORIES,
    DAILY_CATEGORIES,
    LinkedAccount,
    PhysicalInfoTransaction,
    PolarTokens,
)

__all__ = [
    "PolarClient",
    "LinkedAccount",
    "PhysicalInfoTransaction",
    "PolarTokens",
    "ALL_CATEGORIES",
    "DAILY_CATEGORIES",
]
