"""SQLite-backed document store."""

from __future__ import annotations

import asyncio
import contextlib
import json
import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

from shared.dal.document_store import SERVER_TIMESTAMP, DocumentStore, StoreUnavailableError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from shared.db.connection import Database

logger = structlog.get_logger()

DEFAULT_COLLECTION = "users"


class SqliteDocumentStore(DocumentStore):
    """SQLite implementation of DocumentStore.

    Documents are JSON blobs keyed by (collection, id). Writes run as a single
    IMMEDIATE transaction under an asyncio lock. Applied idempotency tokens
    are recorded in the same transaction as the increment they guard, so a
    retried increment after a lost acknowledgement is a no-op. SQLite
    OperationalError (locked/busy database, I/O failure) is mapped to the
    transient StoreUnavailableError.
    """

    def __init__(self, db: Database, collection: str = DEFAULT_COLLECTION) -> None:
        self._db = db
        self._collection = collection
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> dict[str, Any] | None:
        try:
            row = self._db.connection.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (self._collection, key),
            ).fetchone()
        except sqlite3.OperationalError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        if row is None:
            return None
        return json.loads(row[0])

    async def set_merge(self, key: str, fields: dict[str, Any]) -> None:
        async with self._lock:
            with self._transaction() as conn:
                data = self._read_for_update(conn, key) or {}
                data.update(_resolve_sentinels(fields))
                self._write(conn, key, data)

    async def increment(
        self,
        key: str,
        field: str,
        amount: int = 1,
        *,
        idempotency_key: str | None = None,
    ) -> bool:
        async with self._lock:
            with self._transaction() as conn:
                if idempotency_key is not None and self._token_applied(conn, idempotency_key):
                    logger.info("increment already applied", key=key, field=field, idempotency_key=idempotency_key)
                    return False
                data = self._read_for_update(conn, key) or {}
                data[field] = int(data.get(field) or 0) + amount
                self._write(conn, key, data)
                if idempotency_key is not None:
                    conn.execute(
                        "INSERT INTO applied_increments (token, collection, document_id, field, amount, applied_at)"
                        " VALUES (?, ?, ?, ?, ?, ?)",
                        (idempotency_key, self._collection, key, field, amount, _now_iso()),
                    )
        return True

    @contextlib.contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            with self._db.transaction() as conn:
                yield conn
        except sqlite3.OperationalError as exc:
            logger.warning("document store unavailable", collection=self._collection, error=str(exc))
            raise StoreUnavailableError(str(exc)) from exc

    def _read_for_update(self, conn: sqlite3.Connection, key: str) -> dict[str, Any] | None:
        row = conn.execute(
            "SELECT data FROM documents WHERE collection = ? AND id = ?",
            (self._collection, key),
        ).fetchone()
        return json.loads(row[0]) if row is not None else None

    def _write(self, conn: sqlite3.Connection, key: str, data: dict[str, Any]) -> None:
        conn.execute(
            "INSERT INTO documents (collection, id, data) VALUES (?, ?, ?)"
            " ON CONFLICT (collection, id) DO UPDATE SET data = excluded.data",
            (self._collection, key, json.dumps(data)),
        )

    @staticmethod
    def _token_applied(conn: sqlite3.Connection, token: str) -> bool:
        row = conn.execute("SELECT 1 FROM applied_increments WHERE token = ?", (token,)).fetchone()
        return row is not None


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _resolve_sentinels(fields: dict[str, Any]) -> dict[str, Any]:
    return {name: _now_iso() if value is SERVER_TIMESTAMP else value for name, value in fields.items()}
