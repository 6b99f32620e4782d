"""Domain event models emitted by the session layer.

Events are immutable values. The session manager fans each one out to every
subscriber queue; subscribers (UI adapters, the score recorder) own their own
dispatch and threading.

All layers import exclusively from this module for event types.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from game.logic.enums import TERMINAL_OUTCOMES, AbandonReason, Move, Outcome, SessionState, Side


class EventType(StrEnum):
    """Types of session events."""

    SESSION_PAIRED = "session_paired"
    MOVE_SUBMITTED = "move_submitted"
    SESSION_RESOLVED = "session_resolved"
    SESSION_ABANDONED = "session_abandoned"
    SCORE_SYNC_FAILED = "score_sync_failed"


def _new_event_id() -> str:
    return uuid4().hex


class SessionEvent(BaseModel):
    """Base class for all session events."""

    model_config = ConfigDict(frozen=True)

    type: EventType
    session_id: str
    event_id: str = Field(default_factory=_new_event_id)


class SessionPairedEvent(SessionEvent):
    """Both players are known; the session is ready to collect moves."""

    type: Literal[EventType.SESSION_PAIRED] = EventType.SESSION_PAIRED
    local_player_id: str
    remote_player_id: str
    practice: bool = False


class MoveSubmittedEvent(SessionEvent):
    """One side locked in a move. The move itself is withheld until resolution."""

    type: Literal[EventType.MOVE_SUBMITTED] = EventType.MOVE_SUBMITTED
    side: Side


class SessionResolvedEvent(SessionEvent):
    """Both moves are in and the outcome has been adjudicated.

    Emitted exactly once per resolution. `event_id` doubles as the
    idempotency key for the ledger write that records `outcome`.
    """

    type: Literal[EventType.SESSION_RESOLVED] = EventType.SESSION_RESOLVED
    local_player_id: str
    remote_player_id: str
    local_move: Move
    remote_move: Move
    outcome: Outcome

    @model_validator(mode="after")
    def _validate_outcome(self) -> SessionResolvedEvent:
        if self.outcome not in TERMINAL_OUTCOMES:
            raise ValueError(f"resolved event requires a terminal outcome, got {self.outcome.value}")
        return self


class SessionAbandonedEvent(SessionEvent):
    """The session ended without a result."""

    type: Literal[EventType.SESSION_ABANDONED] = EventType.SESSION_ABANDONED
    reason: AbandonReason
    previous_state: SessionState


class ScoreSyncFailedEvent(SessionEvent):
    """User-facing notice that a resolved outcome could not be saved.

    The in-memory outcome stands; only the persisted tally is behind.
    """

    type: Literal[EventType.SCORE_SYNC_FAILED] = EventType.SCORE_SYNC_FAILED
    player_id: str
    outcome: Outcome
    message: str
