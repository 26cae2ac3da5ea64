"""In-process document store.

Used by the test-suite and for local runs without ``DATABASE_URL``.  Data is
lost when the process exits.
"""

from __future__ import annotations

import copy
import uuid
from typing import Any

from questfit.store.base import Document, DocumentStore
from questfit.store.paths import split_document_path


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed DocumentStore.

    Stored documents are deep-copied on the way in and out so callers can't
    mutate store state through a returned dict.
    """

    def __init__(self) -> None:
        self._docs: dict[str, Document] = {}

    async def get(self, path: str) -> Document | None:
        split_document_path(path)
        doc = self._docs.get(path.strip("/"))
        return copy.deepcopy(doc) if doc is not None else None

    async def set(self, path: str, data: Document, merge: bool = False) -> None:
        split_document_path(path)
        key = path.strip("/")
        if merge and key in self._docs:
            self._docs[key].update(copy.deepcopy(data))
        else:
            self._docs[key] = copy.deepcopy(data)

    async def add(self, collection: str, data: Document) -> str:
        doc_id = uuid.uuid4().hex[:20]
        await self.set(f"{collection.strip('/')}/{doc_id}", data)
        return doc_id

    async def delete(self, path: str) -> None:
        self._docs.pop(path.strip("/"), None)

    async def delete_fields(self, path: str, fields: list[str]) -> None:
        doc = self._docs.get(path.strip("/"))
        if doc is None:
            return
        for name in fields:
            doc.pop(name, None)

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
        prefix = collection.strip("/")
        rows: list[tuple[str, Document]] = []
        for key, doc in self._docs.items():
            parent, _, doc_id = key.rpartition("/")
            if parent != prefix:
                continue
            if id_start is not None and doc_id < id_start:
                continue
            if id_end is not None and doc_id > id_end:
                continue
            rows.append((doc_id, copy.deepcopy(doc)))

        if order_by is None:
            rows.sort(key=lambda r: r[0], reverse=descending)
        else:
            # documents missing the field are excluded
            rows = [r for r in rows if r[1].get(order_by) is not None]
            rows.sort(key=lambda r: _sort_key(r[1][order_by]), reverse=descending)

        return rows[:limit] if limit is not None else rows

    def dump(self) -> dict[str, Document]:
        """Snapshot of every stored document, keyed by path."""
        return copy.deepcopy(self._docs)


def _sort_key(value: Any) -> tuple[int, Any]:
    # numbers sort before strings
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    return (1, str(value))
