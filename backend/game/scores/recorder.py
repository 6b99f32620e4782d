"""Persist resolved session outcomes out of band."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

import structlog

from game.logic.events import ScoreSyncFailedEvent, SessionResolvedEvent
from game.scores.exceptions import BackendUnavailableError, LedgerError

if TYPE_CHECKING:
    from game.logic.events import SessionEvent
    from game.scores.ledger import ScoreLedger
    from game.session.manager import SessionManager
    from shared.auth.identity import IdentityProvider

logger = structlog.get_logger()

SYNC_FAILED_MESSAGE = "Failed to update game result"


class ScoreRecorder:
    """Subscribe to a SessionManager and write every result to the ledger.

    Each SessionResolvedEvent gets its own persistence task so a slow or
    failing store never blocks the state machine, and a ledger failure never
    rolls back the in-memory outcome. A write that exhausts its retries is
    reported on `notifications` as a ScoreSyncFailedEvent. Writes are not
    cancellable: stop() ends event consumption, then waits for in-flight
    writes to finish.
    """

    def __init__(
        self,
        manager: SessionManager,
        ledger: ScoreLedger,
        identity: IdentityProvider | None = None,
    ) -> None:
        self._manager = manager
        self._ledger = ledger
        self._identity = identity
        self._notifications: asyncio.Queue[ScoreSyncFailedEvent] = asyncio.Queue()
        self._events: asyncio.Queue[SessionEvent] | None = None
        self._consumer: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def notifications(self) -> asyncio.Queue[ScoreSyncFailedEvent]:
        return self._notifications

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._pending if not task.done())

    @property
    def is_running(self) -> bool:
        return self._consumer is not None and not self._consumer.done()

    def start(self) -> None:
        if self._consumer is not None:
            raise RuntimeError("score recorder already started")
        self._events = self._manager.subscribe()
        self._consumer = asyncio.create_task(self._consume(self._events))

    async def stop(self) -> None:
        if self._consumer is not None:
            self._consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._consumer
            self._consumer = None
        if self._events is not None:
            self._manager.unsubscribe(self._events)
            self._events = None
        await self.drain()

    async def drain(self) -> None:
        """Wait until every in-flight write has finished.

        Only unfinished tasks are awaited: a finished task may still sit in
        _pending until its done-callback runs.
        """
        while pending := {task for task in self._pending if not task.done()}:
            await asyncio.wait(pending)

    async def _consume(self, events: asyncio.Queue[SessionEvent]) -> None:
        while True:
            event = await events.get()
            if isinstance(event, SessionResolvedEvent):
                self._spawn(event)

    def _spawn(self, event: SessionResolvedEvent) -> None:
        task = asyncio.create_task(self._persist(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist(self, event: SessionResolvedEvent) -> None:
        if self._identity is not None and not self._identity.is_authenticated:
            logger.warning("no signed-in player, outcome not recorded", session_id=event.session_id)
            return
        try:
            await self._ledger.apply_outcome(event.local_player_id, event.outcome, idempotency_key=event.event_id)
        except BackendUnavailableError as exc:
            logger.warning("score sync failed", session_id=event.session_id, error=str(exc))
            self._notifications.put_nowait(
                ScoreSyncFailedEvent(
                    session_id=event.session_id,
                    player_id=event.local_player_id,
                    outcome=event.outcome,
                    message=SYNC_FAILED_MESSAGE,
                ),
            )
            return
        except LedgerError:
            logger.exception("outcome rejected by ledger", session_id=event.session_id)
            return
        self._manager.acknowledge_result(event.session_id, event.event_id)
