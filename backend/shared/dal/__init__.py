"""Data access layer: store interfaces and shared persistence models."""

from shared.dal.document_store import SERVER_TIMESTAMP, DocumentStore, StoreUnavailableError
from shared.dal.models import PlayerRecord

__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentStore",
    "PlayerRecord",
    "StoreUnavailableError",
]
