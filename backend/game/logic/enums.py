"""
String enum definitions for rock-paper-scissors game concepts.
"""

from enum import StrEnum


class Move(StrEnum):
    """A move a player can commit to."""

    ROCK = "rock"
    PAPER = "paper"
    SCISSORS = "scissors"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Outcome(StrEnum):
    """Result of a session from one side's perspective.

    PENDING is the placeholder held by sessions that have not resolved yet;
    adjudication never produces it.
    """

    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"
    PENDING = "pending"

    @property
    def label(self) -> str:
        return _OUTCOME_LABELS[self]


_OUTCOME_LABELS = {
    Outcome.WIN: "You Won!",
    Outcome.LOSE: "You Lost!",
    Outcome.DRAW: "It's a Draw!",
    Outcome.PENDING: "",
}

# Outcomes that map onto a ledger counter.
TERMINAL_OUTCOMES = frozenset({Outcome.WIN, Outcome.LOSE, Outcome.DRAW})


class Side(StrEnum):
    """Which move slot of a session a submission targets."""

    LOCAL = "local"
    REMOTE = "remote"


class SessionState(StrEnum):
    """Lifecycle states of a single session."""

    IDLE = "idle"
    PAIRED = "paired"
    AWAITING_MOVES = "awaiting_moves"
    RESOLVED = "resolved"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.RESOLVED, SessionState.ABANDONED)


class AbandonReason(StrEnum):
    """Why a session ended without a result."""

    EXPLICIT = "explicit"
    IDLE_TIMEOUT = "idle_timeout"
