"""Typed domain exceptions for session lifecycle violations.

All state-machine errors derive from SessionError. They are usage errors:
raised synchronously to the caller, never retried by the session layer.
"""

from game.logic.enums import SessionState, Side


class SessionError(Exception):
    """Base exception for session lifecycle violations."""


class InvalidPairingError(SessionError):
    """Pairing code is empty or identifies the local player."""


class PlayerBusyError(SessionError):
    """Player already holds an active (non-terminal) session."""

    def __init__(self, player_id: str, session_id: str) -> None:
        self.player_id = player_id
        self.session_id = session_id
        super().__init__(f"player {player_id} already has active session {session_id}")


class NotAuthenticatedError(SessionError):
    """Identity provider reports the player as signed out."""


class SessionNotFoundError(SessionError):
    """No session with the given id is known to the manager."""


class InvalidStateError(SessionError):
    """Operation is not valid in the session's current state.

    Attributes:
        session_id: The session the operation targeted.
        state: The state the session was in when the operation was rejected.
        operation: Name of the rejected operation (e.g. "submit_move").

    """

    def __init__(self, *, session_id: str, state: SessionState, operation: str) -> None:
        self.session_id = session_id
        self.state = state
        self.operation = operation
        super().__init__(f"cannot {operation} session {session_id} in state {state.value}")


class DuplicateSubmissionError(SessionError):
    """The same side submitted a second move before resolution."""

    def __init__(self, *, session_id: str, side: Side) -> None:
        self.session_id = session_id
        self.side = side
        super().__init__(f"{side.value} side already submitted a move in session {session_id}")
