"""Abstract interface for the key-value document store backing player records."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Final


class _ServerTimestamp:
    """Sentinel resolved to the store's current time when a write is applied."""

    _instance: _ServerTimestamp | None = None

    def __new__(cls) -> _ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP: Final = _ServerTimestamp()


class StoreUnavailableError(Exception):
    """Transient store failure (network drop, lock contention, timeout).

    Callers may retry the operation that raised it.
    """


class DocumentStore(ABC):
    """Key-value-by-identifier document storage.

    Implementations can use SQLite, a hosted document database, etc.
    """

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        """Return a copy of the document stored under key, or None."""

    @abstractmethod
    async def set_merge(self, key: str, fields: dict[str, Any]) -> None:
        """Write fields into the document, creating it if needed.

        Fields not named in `fields` are left untouched. SERVER_TIMESTAMP
        values are replaced with the store's current time.
        """

    @abstractmethod
    async def increment(
        self,
        key: str,
        field: str,
        amount: int = 1,
        *,
        idempotency_key: str | None = None,
    ) -> bool:
        """Atomically add amount to a numeric field.

        A missing document or field is treated as 0. When idempotency_key was
        already applied, nothing changes and False is returned; otherwise the
        key is recorded in the same atomic step and True is returned.
        """
