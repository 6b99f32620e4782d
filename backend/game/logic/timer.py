"""
Server-side idle timer for sessions.

A session that goes quiet after pairing is abandoned once the idle timeout
elapses. The timer is re-armed on every state-advancing event and cancelled
when the session reaches a terminal state.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from game.session.settings import SessionSettings


class TimerConfig(BaseModel):
    """Configuration for session idle timers."""

    idle_timeout_seconds: float = Field(default=60, gt=0)

    @classmethod
    def from_settings(cls, settings: SessionSettings) -> TimerConfig:
        """Build TimerConfig from SessionSettings."""
        return cls(idle_timeout_seconds=settings.idle_timeout_seconds)


class IdleTimer:
    """Single cancellable countdown that fires a callback when it expires."""

    def __init__(self, config: TimerConfig | None = None) -> None:
        self._config = config or TimerConfig()
        self._active_task: asyncio.Task[None] | None = None

    @property
    def timeout_seconds(self) -> float:
        return self._config.idle_timeout_seconds

    @property
    def is_active(self) -> bool:
        return self._active_task is not None and not self._active_task.done()

    def start(self, on_timeout: Callable[[], Awaitable[None]]) -> None:
        """Start (or restart) the countdown."""
        self.cancel()
        self._active_task = asyncio.create_task(self._run_timer(self._config.idle_timeout_seconds, on_timeout))

    def cancel(self) -> None:
        """Cancel the active countdown, if any.

        Safe to call from inside the timeout callback: the running task is
        released rather than cancelled, so the callback runs to completion.
        """
        task = self._active_task
        self._active_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    async def _run_timer(self, seconds: float, on_timeout: Callable[[], Awaitable[None]]) -> None:
        try:
            await asyncio.sleep(seconds)
            await on_timeout()
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("idle timer callback failed")
