import time
from dataclasses import dataclass, field

from game.logic.enums import Move, Outcome, SessionState, Side


@dataclass
class Session:
    """One two-sided match from pairing through outcome.

    Lifecycle:
    - Created in IDLE by SessionManager.create_session
    - PAIRED once the remote player id is exchanged
    - AWAITING_MOVES after the first accepted move
    - RESOLVED when both move slots are filled (outcome adjudicated)
    - ABANDONED on explicit abandon or idle timeout
    - Removed from the manager by release_session, or by the reaper once it
      has been terminal for the retention window

    Move slots are addressed by Side, never by device, so the remote slot can
    be filled by a networked opponent or a local practice opponent alike.
    """

    session_id: str
    local_player_id: str
    remote_player_id: str | None = None
    local_move: Move | None = None
    remote_move: Move | None = None
    state: SessionState = SessionState.IDLE
    resolved_outcome: Outcome = Outcome.PENDING
    practice: bool = False
    result_event_id: str | None = None  # id of the SessionResolvedEvent for the current result
    result_acknowledged: bool = False
    ended_at: float | None = None  # monotonic time the session last became terminal
    created_at: float = field(default_factory=time.monotonic)

    def move_for(self, side: Side) -> Move | None:
        return self.local_move if side == Side.LOCAL else self.remote_move

    def set_move(self, side: Side, move: Move) -> None:
        if side == Side.LOCAL:
            self.local_move = move
        else:
            self.remote_move = move

    def clear_moves(self) -> None:
        self.local_move = None
        self.remote_move = None

    @property
    def has_both_moves(self) -> bool:
        return self.local_move is not None and self.remote_move is not None

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal
