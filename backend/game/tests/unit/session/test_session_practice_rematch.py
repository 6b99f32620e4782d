import pytest

from game.logic.enums import Move, Outcome, SessionState, Side
from game.logic.events import MoveSubmittedEvent, SessionPairedEvent, SessionResolvedEvent
from game.logic.exceptions import InvalidStateError, PlayerBusyError
from game.logic.practice import PRACTICE_OPPONENT_ID, PracticeOpponent
from game.tests.helpers.session import drain_events, events_of, paired_session


class TestPracticeSession:
    async def test_practice_starts_paired(self, manager, events):
        session = await manager.start_practice("alice", PracticeOpponent(seed=3))

        assert session.practice is True
        assert session.state == SessionState.PAIRED
        assert session.remote_player_id == PRACTICE_OPPONENT_ID
        [paired] = drain_events(events)
        assert isinstance(paired, SessionPairedEvent)
        assert paired.practice is True

    async def test_local_move_resolves_against_opponent(self, manager, events):
        expected_remote = PracticeOpponent(seed=11).choose_move()
        session = await manager.start_practice("alice", PracticeOpponent(seed=11))
        drain_events(events)

        await manager.submit_move(session.session_id, Side.LOCAL, Move.ROCK)

        collected = drain_events(events)
        sides = [e.side for e in events_of(collected, MoveSubmittedEvent)]
        assert sides == [Side.LOCAL, Side.REMOTE]
        [resolved] = events_of(collected, SessionResolvedEvent)
        assert resolved.remote_move == expected_remote
        assert session.state == SessionState.RESOLVED

    async def test_practice_respects_active_session_rule(self, manager):
        manager.create_session("alice")
        with pytest.raises(PlayerBusyError):
            await manager.start_practice("alice")


class TestRematch:
    async def _resolve(self, manager, session, local=Move.ROCK, remote=Move.SCISSORS):
        await manager.submit_move(session.session_id, Side.LOCAL, local)
        await manager.submit_move(session.session_id, Side.REMOTE, remote)

    async def test_rematch_resets_to_paired(self, manager, events):
        session = await paired_session(manager)
        await self._resolve(manager, session)
        drain_events(events)

        await manager.rematch(session.session_id)

        assert session.state == SessionState.PAIRED
        assert session.local_move is None
        assert session.remote_move is None
        assert session.resolved_outcome == Outcome.PENDING
        assert session.remote_player_id == "bob"
        assert manager.active_session_for("alice") is session
        [paired] = drain_events(events)
        assert isinstance(paired, SessionPairedEvent)

    async def test_second_round_emits_new_result(self, manager, events):
        session = await paired_session(manager)
        await self._resolve(manager, session, Move.ROCK, Move.SCISSORS)
        await manager.rematch(session.session_id)
        await self._resolve(manager, session, Move.ROCK, Move.PAPER)

        resolved = events_of(drain_events(events), SessionResolvedEvent)
        assert [e.outcome for e in resolved] == [Outcome.WIN, Outcome.LOSE]
        assert resolved[0].event_id != resolved[1].event_id

    async def test_first_round_ack_is_stale_after_rematch(self, manager, events):
        session = await paired_session(manager)
        await self._resolve(manager, session)
        [first] = events_of(drain_events(events), SessionResolvedEvent)
        await manager.rematch(session.session_id)

        assert manager.acknowledge_result(session.session_id, first.event_id) is False

    async def test_rematch_requires_resolved(self, manager):
        session = await paired_session(manager)
        with pytest.raises(InvalidStateError):
            await manager.rematch(session.session_id)
        await manager.abandon(session.session_id)
        with pytest.raises(InvalidStateError):
            await manager.rematch(session.session_id)

    async def test_rematch_blocked_by_newer_session(self, manager):
        session = await paired_session(manager)
        await self._resolve(manager, session)
        manager.create_session("alice")

        with pytest.raises(PlayerBusyError):
            await manager.rematch(session.session_id)
        assert session.state == SessionState.RESOLVED

    async def test_practice_rematch_keeps_opponent(self, manager):
        session = await manager.start_practice("alice", PracticeOpponent(seed=5))
        await manager.submit_move(session.session_id, Side.LOCAL, Move.PAPER)
        await manager.rematch(session.session_id)
        await manager.submit_move(session.session_id, Side.LOCAL, Move.PAPER)

        assert session.state == SessionState.RESOLVED
        assert session.practice is True
