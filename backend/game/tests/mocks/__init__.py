from game.tests.mocks.document_store import FIXED_SERVER_TIMESTAMP, FlakyDocumentStore, InMemoryDocumentStore
from game.tests.mocks.sleep import RecordingSleep

__all__ = [
    "FIXED_SERVER_TIMESTAMP",
    "FlakyDocumentStore",
    "InMemoryDocumentStore",
    "RecordingSleep",
]
