"""Adjudication: map two moves to an outcome.

Pure functions with no hidden state. Everything here is safe to call from any
layer, including tests that enumerate the full move grid.
"""

from game.logic.enums import Move, Outcome

# Each move and the move it defeats.
BEATS: dict[Move, Move] = {
    Move.ROCK: Move.SCISSORS,
    Move.PAPER: Move.ROCK,
    Move.SCISSORS: Move.PAPER,
}


def beats(a: Move, b: Move) -> bool:
    """Return True when move `a` defeats move `b`."""
    return BEATS[a] == b


def adjudicate(a: Move, b: Move) -> Outcome:
    """Return the outcome from the perspective of the player who played `a`."""
    if a == b:
        return Outcome.DRAW
    if beats(a, b):
        return Outcome.WIN
    return Outcome.LOSE
