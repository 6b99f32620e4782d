import pytest

from game.scores.ledger import ScoreLedger
from game.tests.mocks import InMemoryDocumentStore, RecordingSleep
from shared.retry import RetryPolicy


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def ledger(store, sleep):
    return ScoreLedger(store, policy=RetryPolicy(max_attempts=3, delay_seconds=1.0), sleep=sleep)
