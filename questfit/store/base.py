"""Abstract document store.

The sync orchestrator, reconciler, gamification layer and dashboard all read
and write through this interface.  Documents are JSON-compatible dicts
addressed by slash-separated paths (see :mod:`questfit.store.paths`).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger("questfit.store")

Document = dict[str, Any]


class DocumentStore(ABC):
    """Hierarchical, path-addressed JSON document store.

    Writes are last-write-wins; there are no transactions or locks.
    """

    @abstractmethod
    async def get(self, path: str) -> Document | None:
        """Return the document at ``path`` or None if absent."""

    @abstractmethod
    async def set(self, path: str, data: Document, merge: bool = False) -> None:
        """Create or overwrite a document.

        Args:
            path:  Document path.
            data:  Document body.
            merge: When True, top-level keys are merged into the existing
                   document instead of replacing it.
        """

    @abstractmethod
    async def add(self, collection: str, data: Document) -> str:
        """Insert a document with a generated id and return the id."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete a document.  Deleting a missing document is a no-op."""

    @abstractmethod
    async def delete_fields(self, path: str, fields: list[str]) -> None:
        """Remove top-level fields from an existing document."""

    @abstractmethod
    async def list_documents(
        self,
        collection: str,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        id_start: str | None = None,
        id_end: str | None = None,
    ) -> list[tuple[str, Document]]:
        """List ``(doc_id, data)`` pairs of a collection.

        Args:
            collection: Collection path.
            order_by:   Top-level field to sort on; document id when None.
            descending: Sort direction.
            limit:      Maximum number of documents.
            id_start:   Inclusive lower bound on the document id.
            id_end:     Inclusive upper bound on the document id.
        """

    async def close(self) -> None:
        """Release backend resources."""
