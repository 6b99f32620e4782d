"""Typed exceptions raised by the score ledger."""

from game.logic.enums import Outcome


class LedgerError(Exception):
    """Base exception for score ledger failures."""


class InvalidOutcomeError(LedgerError):
    """Outcome does not map onto a counter (e.g. PENDING)."""

    def __init__(self, outcome: Outcome) -> None:
        self.outcome = outcome
        super().__init__(f"cannot record non-terminal outcome {outcome.value!r}")


class RecordNotFoundError(LedgerError):
    """No record exists for the player and no default was requested."""

    def __init__(self, player_id: str) -> None:
        self.player_id = player_id
        super().__init__(f"no score record for player {player_id}")


class BackendUnavailableError(LedgerError):
    """The document store kept failing until the retry bound was exhausted.

    Attributes:
        operation: The ledger step that gave up (e.g. "increment losses").
        attempts: How many attempts were made.

    """

    def __init__(self, operation: str, attempts: int) -> None:
        self.operation = operation
        self.attempts = attempts
        super().__init__(f"score backend unavailable: {operation} failed after {attempts} attempt(s)")
