"""Locally simulated opponent for practice sessions."""

import random
import secrets

from game.logic.enums import Move

PRACTICE_OPPONENT_ID = "practice-opponent"


class PracticeOpponent:
    """Pick the remote move for a practice session uniformly at random.

    Pass a seed for reproducible sequences (tests, replays of a practice run);
    without one, the generator is seeded from the OS entropy pool.
    """

    def __init__(self, seed: int | None = None, player_id: str = PRACTICE_OPPONENT_ID) -> None:
        self._rng = random.Random(seed if seed is not None else secrets.randbits(64))  # noqa: S311
        self.player_id = player_id

    def choose_move(self) -> Move:
        return self._rng.choice(list(Move))
