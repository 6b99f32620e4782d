"""Manage per-session idle timers."""

from collections.abc import Awaitable, Callable

import structlog

from game.logic.timer import IdleTimer, TimerConfig

logger = structlog.get_logger()

# Callback type: (session_id) -> Awaitable[None]
TimeoutCallback = Callable[[str], Awaitable[None]]


class TimerManager:
    """Manage idle timer lifecycle for all active sessions.

    This class handles timer creation, restart, and cleanup. It does NOT
    inspect session state -- the caller (SessionManager) decides when a
    session advanced and re-checks state when a timeout fires.
    """

    def __init__(self, on_timeout: TimeoutCallback, config: TimerConfig | None = None) -> None:
        self._timers: dict[str, IdleTimer] = {}
        self._config = config or TimerConfig()
        self._on_timeout = on_timeout

    def has_timer(self, session_id: str) -> bool:
        return session_id in self._timers

    def get_timer(self, session_id: str) -> IdleTimer | None:
        return self._timers.get(session_id)

    def arm(self, session_id: str) -> None:
        """Start the idle countdown for a session, restarting any running one."""
        timer = self._timers.get(session_id)
        if timer is None:
            timer = IdleTimer(config=self._config)
            self._timers[session_id] = timer
        timer.start(lambda sid=session_id: self._on_timeout(sid))
        logger.debug("idle timer armed", session_id=session_id, timeout_seconds=timer.timeout_seconds)

    def cancel(self, session_id: str) -> None:
        """Cancel and drop the timer for a session."""
        timer = self._timers.pop(session_id, None)
        if timer is not None:
            timer.cancel()

    def cancel_all(self) -> None:
        """Cancel every timer (manager shutdown)."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    @property
    def active_count(self) -> int:
        return sum(1 for timer in self._timers.values() if timer.is_active)
