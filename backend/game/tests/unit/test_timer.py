import asyncio
import logging

import pytest
from pydantic import ValidationError

from game.logic.timer import IdleTimer, TimerConfig
from game.session.settings import SessionSettings


class TestTimerConfig:
    def test_default_is_sixty_seconds(self):
        assert TimerConfig().idle_timeout_seconds == 60

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            TimerConfig(idle_timeout_seconds=0)

    def test_from_settings(self):
        settings = SessionSettings(idle_timeout_seconds=12.5)
        assert TimerConfig.from_settings(settings).idle_timeout_seconds == 12.5


class TestIdleTimer:
    async def test_callback_fires_on_timeout(self):
        timer = IdleTimer(TimerConfig(idle_timeout_seconds=0.05))
        fired = asyncio.Event()

        async def on_timeout():
            fired.set()

        timer.start(on_timeout)
        await asyncio.wait_for(fired.wait(), timeout=1.0)
        assert fired.is_set()

    async def test_cancel_prevents_callback(self):
        timer = IdleTimer(TimerConfig(idle_timeout_seconds=0.05))
        fired = False

        async def on_timeout():
            nonlocal fired
            fired = True

        timer.start(on_timeout)
        timer.cancel()
        await asyncio.sleep(0.1)
        assert fired is False
        assert timer.is_active is False

    async def test_restart_resets_countdown(self):
        timer = IdleTimer(TimerConfig(idle_timeout_seconds=0.1))
        fired_count = 0

        async def on_timeout():
            nonlocal fired_count
            fired_count += 1

        timer.start(on_timeout)
        await asyncio.sleep(0.06)
        timer.start(on_timeout)
        await asyncio.sleep(0.06)
        # first countdown was replaced before it expired
        assert fired_count == 0
        await asyncio.sleep(0.1)
        assert fired_count == 1

    async def test_cancel_from_inside_callback_lets_it_finish(self):
        timer = IdleTimer(TimerConfig(idle_timeout_seconds=0.01))
        finished = asyncio.Event()

        async def on_timeout():
            timer.cancel()
            await asyncio.sleep(0)
            finished.set()

        timer.start(on_timeout)
        await asyncio.wait_for(finished.wait(), timeout=1.0)

    async def test_callback_error_is_contained(self):
        timer = IdleTimer(TimerConfig(idle_timeout_seconds=0.01))

        async def on_timeout():
            raise RuntimeError("boom")

        timer.start(on_timeout)
        await asyncio.sleep(0.05)
        assert timer.is_active is False

    async def test_any_callback_exception_is_logged(self, caplog):
        timer = IdleTimer(TimerConfig(idle_timeout_seconds=0.01))

        async def on_timeout():
            raise KeyError("missing")

        timer.start(on_timeout)
        task = timer._active_task
        with caplog.at_level(logging.ERROR):
            await asyncio.wait_for(asyncio.shield(task), timeout=1.0)

        assert task.exception() is None
        assert "idle timer callback failed" in caplog.text

    def test_cancel_without_start_is_noop(self):
        IdleTimer().cancel()
