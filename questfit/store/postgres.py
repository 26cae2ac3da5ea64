"""Postgres-backed document store.

Documents live in a single JSONB table keyed by their full path, with the
parent collection and document id denormalized for listing::

    documents(path TEXT PRIMARY KEY, collection TEXT, doc_id TEXT,
              data JSONB, updated_at TIMESTAMPTZ)

Uses ``asyncpg`` directly with a connection pool created once at app
startup.  Merge writes use JSONB concatenation (``||``), which merges
top-level keys only.
"""

from __future__ import annotations

import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import asyncpg

from questfit.config import Settings, get_settings
from questfit.store.base import Document, DocumentStore
from questfit.store.paths import split_document_path

logger = logging.getLogger("questfit.store.postgres")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    path        TEXT PRIMARY KEY,
    collection  TEXT NOT NULL,
    doc_id      TEXT NOT NULL,
    data        JSONB NOT NULL DEFAULT '{}'::jsonb,
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS documents_collection_idx ON documents (collection, doc_id);
"""


class PostgresDocumentStore(DocumentStore):
    """DocumentStore on top of an asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    @classmethod
    async def connect(cls, settings: Settings | None = None) -> "PostgresDocumentStore":
        """Create the pool and ensure the schema exists.  Call once at startup."""
        s = settings or get_settings()
        pool = await asyncpg.create_pool(
            s.database_url,
            min_size=s.database_pool_min,
            max_size=s.database_pool_max,
            command_timeout=30,
        )
        async with pool.acquire() as conn:
            await conn.execute(_SCHEMA)
        logger.info(
            "Document store pool initialized (min=%d, max=%d)",
            s.database_pool_min,
            s.database_pool_max,
        )
        return cls(pool)

    async def close(self) -> None:
        await self._pool.close()
        logger.info("Document store pool closed")

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[asyncpg.Connection, None]:
        async with self._pool.acquire() as conn:
            yield conn

    # ------------------------------------------------------------------
    # DocumentStore interface
    # ------------------------------------------------------------------

    async def get(self, path: str) -> Document | None:
        key = _normalize(path)
        async with self.connection() as conn:
            raw = await conn.fetchval("SELECT data FROM documents WHERE path = $1", key)
        return _decode(raw) if raw is not None else None

    async def set(self, path: str, data: Document, merge: bool = False) -> None:
        key = _normalize(path)
        collection, doc_id = split_document_path(key)
        payload = json.dumps(data, default=str)
        on_conflict = (
            "data = documents.data || EXCLUDED.data" if merge else "data = EXCLUDED.data"
        )
        async with self.connection() as conn:
            await conn.execute(
                f"""
                INSERT INTO documents (path, collection, doc_id, data)
                VALUES ($1, $2, $3, $4::jsonb)
                ON CONFLICT (path) DO UPDATE SET {on_conflict}, updated_at = NOW()
                """,
                key,
                collection,
                doc_id,
                payload,
            )

    async def add(self, collection: str, data: Document) -> str:
        doc_id = uuid.uuid4().hex[:20]
        await self.set(f"{collection.strip('/')}/{doc_id}", data)
        return doc_id

    async def delete(self, path: str) -> None:
        async with self.connection() as conn:
            await conn.execute("DELETE FROM documents WHERE path = $1", _normalize(path))

    async def delete_fields(self, path: str, fields: list[str]) -> None:
        if not fields:
            return
        async with self.connection() as conn:
            await conn.execute(
                "UPDATE documents SET data = data - $2::text[], updated_at = NOW() WHERE path = $1",
                _normalize(path),
                fields,
            )

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
        conditions = ["collection = $1"]
        params: list[Any] = [collection.strip("/")]
        idx = 2

        if id_start is not None:
            conditions.append(f"doc_id >= ${idx}")
            params.append(id_start)
            idx += 1
        if id_end is not None:
            conditions.append(f"doc_id <= ${idx}")
            params.append(id_end)
            idx += 1

        direction = "DESC" if descending else "ASC"
        if order_by is None:
            order_clause = f"doc_id {direction}"
        else:
            conditions.append(f"data ? ${idx}")
            params.append(order_by)
            order_clause = f"data -> ${idx} {direction}"
            idx += 1

        query = f"SELECT doc_id, data FROM documents WHERE {' AND '.join(conditions)} ORDER BY {order_clause}"
        if limit is not None:
            query += f" LIMIT ${idx}"
            params.append(limit)

        async with self.connection() as conn:
            rows = await conn.fetch(query, *params)
        return [(r["doc_id"], _decode(r["data"])) for r in rows]


def _normalize(path: str) -> str:
    return path.strip("/")


def _decode(raw: Any) -> Document:
    # asyncpg returns JSONB as text unless a type codec is registered
    if isinstance(raw, str):
        return json.loads(raw)
    return dict(raw)
