"""SQLite connection, schema and transactions for the bundled document store."""

from __future__ import annotations

import contextlib
import os
import sqlite3
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = structlog.get_logger()

SCHEMA_VERSION = 1

_OWNER_ONLY = 0o600

# documents: one JSON blob per (collection, id).
# applied_increments: idempotency tokens, written in the same transaction as
# the increment they guard.
_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    data TEXT NOT NULL,
    PRIMARY KEY (collection, id)
);

CREATE TABLE IF NOT EXISTS applied_increments (
    token TEXT PRIMARY KEY,
    collection TEXT NOT NULL,
    document_id TEXT NOT NULL,
    field TEXT NOT NULL,
    amount INTEGER NOT NULL,
    applied_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_applied_increments_document
    ON applied_increments (collection, document_id);
"""


class Database:
    """Single SQLite connection in autocommit mode.

    Multi-statement writes go through transaction(), which takes the write
    lock up front (BEGIN IMMEDIATE) so a busy database fails at the start of
    the write rather than halfway through it.
    """

    def __init__(self, path: str | Path, *, busy_timeout_ms: int = 5000) -> None:
        self._path = Path(path)
        self._busy_timeout_ms = busy_timeout_ms
        self._conn: sqlite3.Connection | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def connection(self) -> sqlite3.Connection:
        """Return the active connection or raise if disconnected."""
        if self._conn is None:
            raise RuntimeError("Database is not connected")
        return self._conn

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def schema_version(self) -> int:
        return self.connection.execute("PRAGMA user_version").fetchone()[0]

    def connect(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self._path, check_same_thread=False, isolation_level=None)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute(f"PRAGMA busy_timeout={int(self._busy_timeout_ms)}")
        conn.executescript(_SCHEMA_SQL)
        conn.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
        self._conn = conn

        _restrict_to_owner(self._path)
        logger.info("database connected", path=str(self._path), schema_version=SCHEMA_VERSION)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("database closed", path=str(self._path))

    @contextlib.contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the block in one IMMEDIATE transaction; roll back on any exception."""
        conn = self.connection
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
            conn.execute("COMMIT")
        except BaseException:
            with contextlib.suppress(sqlite3.Error):
                conn.execute("ROLLBACK")
            raise


def _restrict_to_owner(db_path: Path) -> None:
    """chmod the database and its WAL/SHM siblings to owner read/write (POSIX only)."""
    if os.name != "posix":  # pragma: no cover
        return
    for sibling in (db_path, Path(f"{db_path}-wal"), Path(f"{db_path}-shm")):
        if not sibling.exists():
            continue
        try:
            sibling.chmod(_OWNER_ONLY)
        except OSError:
            logger.warning("could not restrict file permissions", path=str(sibling))
