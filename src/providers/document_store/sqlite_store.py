"""SQLite-backed document store.

Persists documents and embedding records to a local SQLite database using
``aiosqlite`` for async I/O.  Vectors are stored as JSON arrays; processing
metadata is stored as a JSON object with camelCase keys.

Connections are opened in autocommit mode and every write that touches
more than one row runs inside an explicit ``BEGIN IMMEDIATE`` transaction,
so a document's embedding batch is committed whole or rolled back whole.
Foreign keys are enabled per connection, giving ``ON DELETE CASCADE`` from
documents to embeddings.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.document_store import IDocumentStore
from src.models.document import Document, ProcessingMetadata
from src.models.rag import EmbeddingRecord
from src.utils.errors import DocumentAlreadyExists, DocumentNotFound

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/documents.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS documents (
    id            TEXT PRIMARY KEY,
    name          TEXT    NOT NULL DEFAULT '',
    content_type  TEXT    NOT NULL DEFAULT 'text/plain',
    size          INTEGER NOT NULL DEFAULT 0,
    owner_id      TEXT,
    content       TEXT    NOT NULL DEFAULT '',
    summary       TEXT,
    category      TEXT,
    metadata_json TEXT    NOT NULL,
    created_at    TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
""",
    """\
CREATE TABLE IF NOT EXISTS embeddings (
    id          TEXT    PRIMARY KEY,
    document_id TEXT    NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    ordinal     INTEGER NOT NULL,
    text        TEXT    NOT NULL,
    vector_json TEXT    NOT NULL,
    model       TEXT    NOT NULL DEFAULT '',
    UNIQUE(document_id, ordinal)
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_embeddings_document ON embeddings(document_id, ordinal);",
    "CREATE INDEX IF NOT EXISTS idx_documents_owner ON documents(owner_id);",
]

_INSERT_DOCUMENT_SQL = """\
INSERT INTO documents
    (id, name, content_type, size, owner_id, content, summary, category, metadata_json, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_SELECT_DOCUMENT_COLUMNS = (
    "id, name, content_type, size, owner_id, content, summary, category, "
    "metadata_json, created_at"
)

_INSERT_EMBEDDING_SQL = """\
INSERT INTO embeddings (id, document_id, ordinal, text, vector_json, model)
VALUES (?, ?, ?, ?, ?, ?);
"""


class SQLiteDocumentStore(IDocumentStore):
    """SQLite-backed document and embedding persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for sql in _CREATE_TABLES_SQL:
                await db.execute(sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
        logger.info("document_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        stored = document.model_copy(
            update={
                "id": document.id or str(uuid.uuid4()),
                "created_at": document.created_at or datetime.now(tz=timezone.utc),  # noqa: UP017
            }
        )
        async with self._connect() as db:
            try:
                await db.execute(
                    _INSERT_DOCUMENT_SQL,
                    (
                        stored.id,
                        stored.name,
                        stored.content_type,
                        stored.size,
                        stored.owner_id,
                        stored.content,
                        stored.summary,
                        stored.category,
                        json.dumps(stored.processing_metadata.to_store()),
                        stored.created_at.isoformat(),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                # id is the only unique column on documents.
                raise DocumentAlreadyExists(
                    message=f"Document {stored.id} already exists",
                    provider_name=self.get_store_name(),
                    document_id=stored.id,
                ) from exc
        logger.debug("document_created", document_id=stored.id, store="sqlite")
        return stored

    async def get_document(self, document_id: str) -> Document:
        async with self._connect() as db:
            return await self._fetch_document(db, document_id)

    async def list_documents(self, owner_id: str | None = None) -> list[Document]:
        async with self._connect() as db:
            if owner_id is None:
                cursor = await db.execute(
                    f"SELECT {_SELECT_DOCUMENT_COLUMNS} FROM documents ORDER BY created_at"
                )
            else:
                cursor = await db.execute(
                    f"SELECT {_SELECT_DOCUMENT_COLUMNS} FROM documents "
                    "WHERE owner_id = ? ORDER BY created_at",
                    (owner_id,),
                )
            rows = await cursor.fetchall()
        return [self._row_to_document(row) for row in rows]

    async def update_document_metadata(
        self, document_id: str, patch: dict[str, Any]
    ) -> Document:
        async with self._connect() as db, self._transaction(db):
            document = await self._fetch_document(db, document_id)
            metadata = document.processing_metadata.merged(patch)
            await db.execute(
                "UPDATE documents SET metadata_json = ? WHERE id = ?",
                (json.dumps(metadata.to_store()), document_id),
            )
        return document.model_copy(update={"processing_metadata": metadata})

    async def delete_document(self, document_id: str) -> None:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            if cursor.rowcount == 0:
                raise DocumentNotFound(
                    message=f"Document {document_id} not found",
                    provider_name=self.get_store_name(),
                    document_id=document_id,
                )
        logger.info("document_deleted", document_id=document_id)

    # ------------------------------------------------------------------
    # Embeddings
    # ------------------------------------------------------------------

    async def put_embeddings(
        self, document_id: str, records: Sequence[EmbeddingRecord]
    ) -> int:
        rows = [
            (
                r.id,
                document_id,
                r.ordinal,
                r.text,
                json.dumps(r.vector),
                r.model,
            )
            for r in records
        ]
        async with self._connect() as db, self._transaction(db):
            # Existence check inside the transaction closes the race with
            # a concurrent delete.
            await self._fetch_document(db, document_id)
            await db.executemany(_INSERT_EMBEDDING_SQL, rows)
        return len(rows)

    async def get_embeddings(self, document_ids: Sequence[str]) -> list[EmbeddingRecord]:
        ids = list(dict.fromkeys(document_ids))
        if not ids:
            return []

        placeholders = ", ".join("?" for _ in ids)
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT id, metadata_json FROM documents WHERE id IN ({placeholders})",
                ids,
            )
            visible = {
                row["id"]
                for row in await cursor.fetchall()
                if ProcessingMetadata.model_validate(json.loads(row["metadata_json"])).is_searchable
            }
            if not visible:
                return []

            visible_ids = [i for i in ids if i in visible]
            placeholders = ", ".join("?" for _ in visible_ids)
            cursor = await db.execute(
                "SELECT id, document_id, ordinal, text, vector_json, model FROM embeddings "
                f"WHERE document_id IN ({placeholders}) ORDER BY ordinal",
                visible_ids,
            )
            rows = await cursor.fetchall()

        position = {document_id: index for index, document_id in enumerate(visible_ids)}
        records = [
            EmbeddingRecord(
                id=row["id"],
                document_id=row["document_id"],
                ordinal=row["ordinal"],
                text=row["text"],
                vector=json.loads(row["vector_json"]),
                model=row["model"],
            )
            for row in rows
        ]
        records.sort(key=lambda r: (position[r.document_id], r.ordinal))
        return records

    async def delete_embeddings(self, document_id: str) -> int:
        async with self._connect() as db:
            cursor = await db.execute(
                "DELETE FROM embeddings WHERE document_id = ?", (document_id,)
            )
            removed = cursor.rowcount
        return removed

    def get_store_name(self) -> str:
        return "sqlite"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        async with aiosqlite.connect(str(self._db_path), isolation_level=None) as db:
            db.row_factory = aiosqlite.Row
            await db.execute("PRAGMA foreign_keys = ON")
            yield db

    @staticmethod
    @asynccontextmanager
    async def _transaction(db: aiosqlite.Connection) -> AsyncIterator[None]:
        await db.execute("BEGIN IMMEDIATE")
        try:
            yield
        except BaseException:
            await db.execute("ROLLBACK")
            raise
        await db.execute("COMMIT")

    async def _fetch_document(self, db: aiosqlite.Connection, document_id: str) -> Document:
        cursor = await db.execute(
            f"SELECT {_SELECT_DOCUMENT_COLUMNS} FROM documents WHERE id = ?",
            (document_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            raise DocumentNotFound(
                message=f"Document {document_id} not found",
                provider_name=self.get_store_name(),
                document_id=document_id,
            )
        return self._row_to_document(row)

    @staticmethod
    def _row_to_document(row: aiosqlite.Row) -> Document:
        return Document(
            id=row["id"],
            name=row["name"],
            content_type=row["content_type"],
            size=row["size"],
            owner_id=row["owner_id"],
            content=row["content"],
            summary=row["summary"],
            category=row["category"],
            created_at=datetime.fromisoformat(row["created_at"].replace("Z", "+00:00")),
            processing_metadata=ProcessingMetadata.model_validate(json.loads(row["metadata_json"])),
        )
