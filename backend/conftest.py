"""Root conftest: test environment and log routing shared by every test package."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from shared.logging import configure_structlog

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

# stdlib routing is what makes caplog see structlog events
configure_structlog()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Keep session_id/player_id bindings from one test out of the next."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
