"""Unit tests for TimerManager in isolation."""

import asyncio

import pytest

from game.logic.timer import TimerConfig
from game.session.timer_manager import TimerManager


@pytest.fixture
def timeout_log():
    """Accumulator for timeout callbacks."""
    return []


@pytest.fixture
def timer_manager(timeout_log):
    async def on_timeout(session_id: str) -> None:
        timeout_log.append(session_id)

    manager = TimerManager(on_timeout=on_timeout, config=TimerConfig(idle_timeout_seconds=0.05))
    yield manager
    manager.cancel_all()


class TestTimerManagerArm:
    async def test_arm_creates_timer(self, timer_manager):
        timer_manager.arm("s1")
        assert timer_manager.has_timer("s1")
        assert timer_manager.get_timer("s1") is not None
        assert timer_manager.active_count == 1

    def test_unknown_session_has_no_timer(self, timer_manager):
        assert not timer_manager.has_timer("unknown")
        assert timer_manager.get_timer("unknown") is None

    async def test_rearm_reuses_timer(self, timer_manager):
        timer_manager.arm("s1")
        timer = timer_manager.get_timer("s1")
        timer_manager.arm("s1")
        assert timer_manager.get_timer("s1") is timer
        assert timer_manager.active_count == 1

    async def test_expiry_reports_session_id(self, timer_manager, timeout_log):
        timer_manager.arm("s1")
        timer_manager.arm("s2")
        await asyncio.sleep(0.15)
        assert sorted(timeout_log) == ["s1", "s2"]


class TestTimerManagerCancel:
    async def test_cancel_drops_timer(self, timer_manager, timeout_log):
        timer_manager.arm("s1")
        timer_manager.cancel("s1")
        await asyncio.sleep(0.1)
        assert not timer_manager.has_timer("s1")
        assert timeout_log == []

    def test_cancel_unknown_is_noop(self, timer_manager):
        timer_manager.cancel("unknown")

    async def test_cancel_all(self, timer_manager, timeout_log):
        timer_manager.arm("s1")
        timer_manager.arm("s2")
        timer_manager.cancel_all()
        await asyncio.sleep(0.1)
        assert timer_manager.active_count == 0
        assert timeout_log == []
