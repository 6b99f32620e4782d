import pytest

from game.logic.timer import TimerConfig
from game.session.manager import SessionManager
from game.tests.helpers.session import FAST_IDLE_TIMEOUT


@pytest.fixture
async def manager():
    session_manager = SessionManager(timer_config=TimerConfig(idle_timeout_seconds=60))
    yield session_manager
    session_manager.shutdown()


@pytest.fixture
async def fast_manager():
    """Manager whose idle timeout elapses within a test."""
    session_manager = SessionManager(timer_config=TimerConfig(idle_timeout_seconds=FAST_IDLE_TIMEOUT))
    yield session_manager
    session_manager.shutdown()


@pytest.fixture
def events(manager):
    return manager.subscribe()
