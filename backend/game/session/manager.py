from __future__ import annotations

import asyncio
import contextlib
import time
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

from game.logic.adjudication import adjudicate
from game.logic.enums import AbandonReason, Move, Outcome, SessionState, Side
from game.logic.events import (
    MoveSubmittedEvent,
    SessionAbandonedEvent,
    SessionEvent,
    SessionPairedEvent,
    SessionResolvedEvent,
)
from game.logic.exceptions import (
    DuplicateSubmissionError,
    InvalidPairingError,
    InvalidStateError,
    NotAuthenticatedError,
    PlayerBusyError,
    SessionNotFoundError,
)
from game.logic.practice import PracticeOpponent
from game.session.models import Session
from game.session.pairing import normalize_pairing_code
from game.session.timer_manager import TimerManager

if TYPE_CHECKING:
    from game.logic.timer import TimerConfig
    from game.session.pairing import PairingTransport
    from shared.auth.identity import IdentityProvider

logger = structlog.get_logger()

# States in which a move may be submitted.
_MOVE_STATES = frozenset({SessionState.PAIRED, SessionState.AWAITING_MOVES})

DEFAULT_RETENTION_SECONDS = 300.0
DEFAULT_REAP_INTERVAL_SECONDS = 30.0


class SessionManager:
    """Own the lifecycle of every session on this node.

    All mutation of a session happens under its per-session lock, so two
    near-simultaneous submissions cannot both observe "one move missing" and
    the resolution event fires exactly once. Events are published to every
    subscriber queue in emission order; nothing here waits on a subscriber.
    """

    def __init__(
        self,
        timer_config: TimerConfig | None = None,
        *,
        retention_seconds: float = DEFAULT_RETENTION_SECONDS,
        reap_interval_seconds: float = DEFAULT_REAP_INTERVAL_SECONDS,
    ) -> None:
        self._sessions: dict[str, Session] = {}  # session_id -> Session
        self._active_by_player: dict[str, str] = {}  # local_player_id -> session_id
        self._session_locks: dict[str, asyncio.Lock] = {}  # session_id -> Lock
        self._practice_opponents: dict[str, PracticeOpponent] = {}  # session_id -> opponent
        self._subscribers: list[asyncio.Queue[SessionEvent]] = []
        self._timer_manager = TimerManager(on_timeout=self._handle_idle_timeout, config=timer_config)
        self._retention_seconds = retention_seconds
        self._reap_interval_seconds = reap_interval_seconds
        self._reaper_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_session(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"unknown session {session_id}")
        return session

    def active_session_for(self, player_id: str) -> Session | None:
        session_id = self._active_by_player.get(player_id)
        return self._sessions.get(session_id) if session_id is not None else None

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Event fan-out
    # ------------------------------------------------------------------

    def subscribe(self) -> asyncio.Queue[SessionEvent]:
        """Register a new subscriber and return the queue it will receive events on."""
        queue: asyncio.Queue[SessionEvent] = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[SessionEvent]) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    def _publish(self, event: SessionEvent) -> None:
        for queue in list(self._subscribers):
            queue.put_nowait(event)

    # ------------------------------------------------------------------
    # Creation and pairing
    # ------------------------------------------------------------------

    def create_session(self, local_player_id: str) -> Session:
        """Open an IDLE session for a player who holds no other active session."""
        if not local_player_id:
            raise ValueError("local_player_id must not be empty")
        existing = self._active_by_player.get(local_player_id)
        if existing is not None:
            raise PlayerBusyError(local_player_id, existing)

        session = Session(session_id=str(uuid4()), local_player_id=local_player_id)
        self._sessions[session.session_id] = session
        self._session_locks[session.session_id] = asyncio.Lock()
        self._active_by_player[local_player_id] = session.session_id
        logger.info("session created", session_id=session.session_id, player_id=local_player_id)
        return session

    def create_session_for(self, identity: IdentityProvider) -> Session:
        """Open a session for the signed-in player reported by the identity provider."""
        if not identity.is_authenticated:
            raise NotAuthenticatedError(f"player {identity.player_id or '<anonymous>'} is not signed in")
        return self.create_session(identity.player_id)

    async def pair(self, session_id: str, transport: PairingTransport) -> Session:
        """Run the pairing exchange and bind the remote player it yields."""
        session = self.get_session(session_id)
        if session.state != SessionState.IDLE:
            raise InvalidStateError(session_id=session_id, state=session.state, operation="pair")
        code = await transport.exchange_pairing_code()
        return await self.pair_with(session_id, code)

    async def pair_with(self, session_id: str, remote_player_id: str) -> Session:
        """Move an IDLE session to PAIRED with the given remote player."""
        session = self.get_session(session_id)
        with structlog.contextvars.bound_contextvars(session_id=session_id):
            async with self._session_locks[session_id]:
                if session.state != SessionState.IDLE:
                    raise InvalidStateError(session_id=session_id, state=session.state, operation="pair")
                remote = normalize_pairing_code(remote_player_id)
                if remote == session.local_player_id:
                    raise InvalidPairingError(f"player {remote} cannot pair with themselves")

                session.remote_player_id = remote
                session.state = SessionState.PAIRED
                self._timer_manager.arm(session_id)
                self._publish(
                    SessionPairedEvent(
                        session_id=session_id,
                        local_player_id=session.local_player_id,
                        remote_player_id=remote,
                        practice=session.practice,
                    ),
                )
            logger.info("session paired", remote_player_id=remote, practice=session.practice)
        return session

    async def start_practice(self, local_player_id: str, opponent: PracticeOpponent | None = None) -> Session:
        """Open a session already paired with a locally simulated opponent."""
        opponent = opponent or PracticeOpponent()
        session = self.create_session(local_player_id)
        session.practice = True
        self._practice_opponents[session.session_id] = opponent
        try:
            return await self.pair_with(session.session_id, opponent.player_id)
        except InvalidPairingError:
            self._discard(session)
            raise

    # ------------------------------------------------------------------
    # Moves and resolution
    # ------------------------------------------------------------------

    async def submit_move(self, session_id: str, side: Side, move: Move) -> Session:
        """Record a move for one side; resolve the session once both sides are in.

        Raises InvalidStateError outside PAIRED/AWAITING_MOVES and
        DuplicateSubmissionError when the side already has a move.
        """
        session = self.get_session(session_id)
        with structlog.contextvars.bound_contextvars(session_id=session_id, side=side):
            async with self._session_locks[session_id]:
                if session.state not in _MOVE_STATES:
                    raise InvalidStateError(session_id=session_id, state=session.state, operation="submit_move")
                if session.move_for(side) is not None:
                    raise DuplicateSubmissionError(session_id=session_id, side=side)

                self._record_move(session, side, move)
                opponent = self._practice_opponents.get(session_id)
                if opponent is not None and side == Side.LOCAL and session.remote_move is None:
                    self._record_move(session, Side.REMOTE, opponent.choose_move())

                if session.has_both_moves:
                    self._resolve(session)
                else:
                    self._timer_manager.arm(session_id)
        return session

    def _record_move(self, session: Session, side: Side, move: Move) -> None:
        session.set_move(side, move)
        session.state = SessionState.AWAITING_MOVES
        self._publish(MoveSubmittedEvent(session_id=session.session_id, side=side))
        logger.debug("move submitted", session_id=session.session_id, side=side)

    def _resolve(self, session: Session) -> None:
        """Adjudicate and emit the single result event. Must be called under the session lock."""
        local_move = session.local_move
        remote_move = session.remote_move
        if local_move is None or remote_move is None or session.remote_player_id is None:
            raise RuntimeError(f"session {session.session_id} resolved with a missing move or opponent")

        outcome = adjudicate(local_move, remote_move)
        session.state = SessionState.RESOLVED
        session.resolved_outcome = outcome
        session.ended_at = time.monotonic()
        self._timer_manager.cancel(session.session_id)
        self._deactivate(session)

        event = SessionResolvedEvent(
            session_id=session.session_id,
            local_player_id=session.local_player_id,
            remote_player_id=session.remote_player_id,
            local_move=local_move,
            remote_move=remote_move,
            outcome=outcome,
        )
        session.result_event_id = event.event_id
        self._publish(event)
        logger.info(
            "session resolved",
            session_id=session.session_id,
            local_move=local_move,
            remote_move=remote_move,
            outcome=outcome,
        )

    def acknowledge_result(self, session_id: str, event_id: str) -> bool:
        """Mark the result identified by event_id as durably recorded.

        Returns False when the session was released or has since moved on
        (rematch), in which case the acknowledgement is stale and ignored.
        """
        session = self._sessions.get(session_id)
        if session is None or session.state != SessionState.RESOLVED or session.result_event_id != event_id:
            logger.debug("stale result acknowledgement ignored", session_id=session_id, event_id=event_id)
            return False
        session.result_acknowledged = True
        return True

    # ------------------------------------------------------------------
    # Abandon, rematch, release
    # ------------------------------------------------------------------

    async def abandon(self, session_id: str) -> Session:
        """Explicitly end a non-terminal session without a result."""
        session = self.get_session(session_id)
        async with self._session_locks[session_id]:
            if session.is_terminal:
                raise InvalidStateError(session_id=session_id, state=session.state, operation="abandon")
            self._abandon(session, AbandonReason.EXPLICIT)
        return session

    async def _handle_idle_timeout(self, session_id: str) -> None:
        lock = self._session_locks.get(session_id)
        if lock is None:
            return
        async with lock:
            session = self._sessions.get(session_id)
            if session is None or session.is_terminal:
                return
            self._abandon(session, AbandonReason.IDLE_TIMEOUT)

    def _abandon(self, session: Session, reason: AbandonReason) -> None:
        """Move a session to ABANDONED. Must be called under the session lock."""
        previous_state = session.state
        session.state = SessionState.ABANDONED
        session.ended_at = time.monotonic()
        self._timer_manager.cancel(session.session_id)
        self._deactivate(session)
        self._publish(
            SessionAbandonedEvent(
                session_id=session.session_id,
                reason=reason,
                previous_state=previous_state,
            ),
        )
        logger.info("session abandoned", session_id=session.session_id, reason=reason, previous_state=previous_state)

    async def rematch(self, session_id: str) -> Session:
        """Reset a RESOLVED session to PAIRED with the same two players."""
        session = self.get_session(session_id)
        async with self._session_locks[session_id]:
            if session.state != SessionState.RESOLVED:
                raise InvalidStateError(session_id=session_id, state=session.state, operation="rematch")
            other = self._active_by_player.get(session.local_player_id)
            if other is not None:
                raise PlayerBusyError(session.local_player_id, other)
            if session.remote_player_id is None:
                raise RuntimeError(f"resolved session {session_id} has no opponent")

            session.clear_moves()
            session.resolved_outcome = Outcome.PENDING
            session.result_event_id = None
            session.result_acknowledged = False
            session.ended_at = None
            session.state = SessionState.PAIRED
            self._active_by_player[session.local_player_id] = session_id
            self._timer_manager.arm(session_id)
            self._publish(
                SessionPairedEvent(
                    session_id=session_id,
                    local_player_id=session.local_player_id,
                    remote_player_id=session.remote_player_id,
                    practice=session.practice,
                ),
            )
        logger.info("session rematch", session_id=session_id)
        return session

    def release_session(self, session_id: str) -> None:
        """Forget a terminal session."""
        session = self.get_session(session_id)
        if not session.is_terminal:
            raise InvalidStateError(session_id=session_id, state=session.state, operation="release")
        self._discard(session)

    def _deactivate(self, session: Session) -> None:
        if self._active_by_player.get(session.local_player_id) == session.session_id:
            del self._active_by_player[session.local_player_id]

    def _discard(self, session: Session) -> None:
        self._timer_manager.cancel(session.session_id)
        self._deactivate(session)
        self._sessions.pop(session.session_id, None)
        self._session_locks.pop(session.session_id, None)
        self._practice_opponents.pop(session.session_id, None)
        logger.debug("session released", session_id=session.session_id)

    def shutdown(self) -> None:
        """Cancel every pending idle timer and the reaper."""
        self._timer_manager.cancel_all()
        if self._reaper_task is not None:
            self._reaper_task.cancel()
            self._reaper_task = None

    # ------------------------------------------------------------------
    # Terminal session reaper
    # ------------------------------------------------------------------

    def start_reaper(self) -> None:
        """Start the periodic release of expired terminal sessions. Idempotent."""
        if self._reaper_task is not None and not self._reaper_task.done():
            return
        self._reaper_task = asyncio.create_task(self._reaper_loop())

    async def stop_reaper(self) -> None:
        if self._reaper_task is not None:
            self._reaper_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reaper_task
            self._reaper_task = None

    async def _reaper_loop(self) -> None:
        while True:
            await asyncio.sleep(self._reap_interval_seconds)
            try:
                await self.reap_terminal_sessions()
            except Exception:
                logger.exception("session reaper encountered an error")

    async def reap_terminal_sessions(self, now: float | None = None) -> int:
        """Release sessions that have been RESOLVED or ABANDONED for longer than the retention window.

        Resolved sessions stay inspectable (and rematchable) until then, whether
        or not their result was acknowledged. Expiry is re-checked under the
        session lock, so a concurrent rematch wins. Returns how many were released.
        """
        now = time.monotonic() if now is None else now
        candidates = [session.session_id for session in list(self._sessions.values()) if self._expired(session, now)]
        released = 0
        for session_id in candidates:
            lock = self._session_locks.get(session_id)
            if lock is None:
                continue
            async with lock:
                session = self._sessions.get(session_id)
                if session is None or not self._expired(session, now):
                    continue
                self._discard(session)
                released += 1
        if released:
            logger.info("terminal sessions released", count=released, remaining=len(self._sessions))
        return released

    def _expired(self, session: Session, now: float) -> bool:
        if not session.is_terminal or session.ended_at is None:
            return False
        return now - session.ended_at >= self._retention_seconds
