from game.logic.enums import TERMINAL_OUTCOMES, Move, Outcome, SessionState


class TestMove:
    def test_labels(self):
        assert [m.label for m in Move] == ["Rock", "Paper", "Scissors"]

    def test_string_values(self):
        assert Move("rock") is Move.ROCK


class TestOutcome:
    def test_labels(self):
        assert Outcome.WIN.label == "You Won!"
        assert Outcome.LOSE.label == "You Lost!"
        assert Outcome.DRAW.label == "It's a Draw!"
        assert Outcome.PENDING.label == ""

    def test_pending_is_not_terminal(self):
        assert Outcome.PENDING not in TERMINAL_OUTCOMES
        assert {Outcome.WIN, Outcome.LOSE, Outcome.DRAW} == TERMINAL_OUTCOMES


class TestSessionState:
    def test_terminal_states(self):
        terminal = {state for state in SessionState if state.is_terminal}
        assert terminal == {SessionState.RESOLVED, SessionState.ABANDONED}
