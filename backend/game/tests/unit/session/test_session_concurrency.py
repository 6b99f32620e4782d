import asyncio

from game.logic.enums import Move, Outcome, SessionState, Side
from game.logic.events import SessionResolvedEvent
from game.logic.exceptions import DuplicateSubmissionError
from game.tests.helpers.session import drain_events, events_of, paired_session


class TestConcurrentSubmissions:
    async def test_simultaneous_moves_resolve_once(self, manager, events):
        session = await paired_session(manager)

        await asyncio.gather(
            manager.submit_move(session.session_id, Side.LOCAL, Move.PAPER),
            manager.submit_move(session.session_id, Side.REMOTE, Move.ROCK),
        )

        resolved = events_of(drain_events(events), SessionResolvedEvent)
        assert len(resolved) == 1
        assert resolved[0].outcome == Outcome.WIN
        assert session.state == SessionState.RESOLVED

    async def test_racing_same_side_accepts_one(self, manager):
        session = await paired_session(manager)

        results = await asyncio.gather(
            manager.submit_move(session.session_id, Side.LOCAL, Move.PAPER),
            manager.submit_move(session.session_id, Side.LOCAL, Move.ROCK),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], DuplicateSubmissionError)
        assert session.local_move == Move.PAPER

    async def test_independent_sessions_do_not_interfere(self, manager, events):
        first = await paired_session(manager, "alice", "bob")
        second = await paired_session(manager, "carol", "dave")

        await asyncio.gather(
            manager.submit_move(first.session_id, Side.LOCAL, Move.ROCK),
            manager.submit_move(second.session_id, Side.LOCAL, Move.SCISSORS),
            manager.submit_move(first.session_id, Side.REMOTE, Move.ROCK),
            manager.submit_move(second.session_id, Side.REMOTE, Move.ROCK),
        )

        resolved = {e.session_id: e.outcome for e in events_of(drain_events(events), SessionResolvedEvent)}
        assert resolved == {first.session_id: Outcome.DRAW, second.session_id: Outcome.LOSE}
