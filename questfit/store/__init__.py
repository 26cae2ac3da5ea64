"""Hierarchical document store.

Backends:
    InMemoryDocumentStore   tests and local runs
    PostgresDocumentStore   asyncpg + JSONB, selected when DATABASE_URL is set
"""

from __future__ import annotations

from questfit.config import Settings
from questfit.store.base import Document, DocumentStore
from questfit.store.memory import InMemoryDocumentStore

__all__ = ["Document", "DocumentStore", "InMemoryDocumentStore", "open_store"]


async def open_store(settings: Settings) -> DocumentStore:
    """Open the backend configured in ``settings``."""
    if settings.database_url:
        from questfit.store.postgres import PostgresDocumentStore

        return await PostgresDocumentStore.connect(settings)
    return InMemoryDocumentStore()
