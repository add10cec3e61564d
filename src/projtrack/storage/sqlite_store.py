"""SQLite document store: JSON bodies in one table, grouped by collection."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

import aiosqlite

from projtrack.models.legacy import INTERNAL_PREPARATION_COLLECTION, TYPE2_COLLECTION
from projtrack.models.migration import BACKUP_COLLECTION
from projtrack.models.project import UNIFIED_COLLECTION, new_id
from projtrack.storage.base import DocumentStore

logger = logging.getLogger(__name__)

# Filter keys are interpolated into a JSON path, so only plain identifiers pass
_FILTER_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

KNOWN_COLLECTIONS = (
    INTERNAL_PREPARATION_COLLECTION,
    TYPE2_COLLECTION,
    UNIFIED_COLLECTION,
    BACKUP_COLLECTION,
)


def _where(collection: str, filters: dict[str, Any] | None) -> tuple[str, list[Any]]:
    conditions = ["collection = ?"]
    params: list[Any] = [collection]
    for key, value in (filters or {}).items():
        if not _FILTER_KEY.match(key):
            raise ValueError(f"Invalid filter key: {key!r}")
        if value is None:
            conditions.append(f"json_extract(body, '$.{key}') IS NULL")
        else:
            conditions.append(f"json_extract(body, '$.{key}') = ?")
            params.append(value)
    return " AND ".join(conditions), params


class SQLiteStore(DocumentStore):
    """SQLite-backed document store with WAL mode and a connection timeout."""

    def __init__(self, db_path: Path, *, timeout: float = 5.0, wal_mode: bool = True) -> None:
        self.db_path = db_path
        self.timeout = timeout
        self.wal_mode = wal_mode
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """Create database and apply schema."""
        if self._db is not None:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(str(self.db_path), timeout=self.timeout)
        self._db.row_factory = aiosqlite.Row

        if self.wal_mode:
            await self._db.execute("PRAGMA journal_mode=WAL")

        await self._db.executescript(_load_sql("documents.sql"))
        await self._db.commit()
        logger.debug("Opened document store at %s", self.db_path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Store not initialized. Call initialize() first.")
        return self._db

    async def insert_document(self, collection: str, document: dict[str, Any]) -> dict[str, Any]:
        stored = dict(document)
        stored["id"] = str(stored.get("id") or new_id())
        await self.db.execute(
            "INSERT INTO documents (collection, id, body) VALUES (?, ?, ?)",
            (collection, stored["id"], json.dumps(stored, ensure_ascii=False, default=str)),
        )
        await self.db.commit()
        return stored

    async def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        cursor = await self.db.execute(
            "SELECT body FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )
        row = await cursor.fetchone()
        return _row_to_dict(row) if row else None

    async def replace_document(
        self, collection: str, doc_id: str, document: dict[str, Any]
    ) -> dict[str, Any] | None:
        stored = dict(document)
        stored["id"] = doc_id
        cursor = await self.db.execute(
            "UPDATE documents SET body = ? WHERE collection = ? AND id = ?",
            (json.dumps(stored, ensure_ascii=False, default=str), collection, doc_id),
        )
        await self.db.commit()
        return stored if cursor.rowcount > 0 else None

    async def delete_document(self, collection: str, doc_id: str) -> bool:
        cursor = await self.db.execute(
            "DELETE FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )
        await self.db.commit()
        return cursor.rowcount > 0

    async def find_documents(
        self,
        collection: str,
        *,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
        newest_first: bool = False,
    ) -> list[dict[str, Any]]:
        where, params = _where(collection, filters)
        order = "DESC" if newest_first else "ASC"
        query = f"SELECT body FROM documents WHERE {where} ORDER BY rowid {order}"
        if limit is not None:
            query += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])
        elif offset:
            query += " LIMIT -1 OFFSET ?"
            params.append(offset)
        cursor = await self.db.execute(query, params)
        rows = await cursor.fetchall()
        return [_row_to_dict(row) for row in rows]

    async def count_documents(
        self, collection: str, *, filters: dict[str, Any] | None = None
    ) -> int:
        where, params = _where(collection, filters)
        cursor = await self.db.execute(f"SELECT COUNT(*) FROM documents WHERE {where}", params)
        row = await cursor.fetchone()
        return row[0] if row else 0

    async def delete_all(self, collection: str) -> int:
        cursor = await self.db.execute("DELETE FROM documents WHERE collection = ?", (collection,))
        await self.db.commit()
        return cursor.rowcount

    # --- Stats ---

    async def get_stats(self) -> dict[str, Any]:
        counts = dict.fromkeys(KNOWN_COLLECTIONS, 0)
        cursor = await self.db.execute(
            "SELECT collection, COUNT(*) AS count FROM documents GROUP BY collection"
        )
        rows = await cursor.fetchall()
        counts.update({row["collection"]: row["count"] for row in rows})
        return {"collections": counts, "db_path": str(self.db_path)}


# --- Helpers ---


def _load_sql(filename: str) -> str:
    """Load SQL file from the schema directory."""
    schema_dir = Path(__file__).parent.parent / "schema"
    return (schema_dir / filename).read_text()


def _row_to_dict(row: aiosqlite.Row) -> dict[str, Any]:
    """Decode a stored JSON body."""
    return json.loads(row["body"])
