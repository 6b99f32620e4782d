import asyncio
from typing import TypeVar

from game.logic.events import SessionEvent
from game.session.manager import SessionManager
from game.session.models import Session

E = TypeVar("E", bound=SessionEvent)

# Short enough for timeout tests to observe an expiry.
FAST_IDLE_TIMEOUT = 0.05


async def paired_session(manager: SessionManager, local: str = "alice", remote: str = "bob") -> Session:
    """Create a session for `local` and pair it with `remote`."""
    session = manager.create_session(local)
    return await manager.pair_with(session.session_id, remote)


def drain_events(queue: asyncio.Queue[SessionEvent]) -> list[SessionEvent]:
    """Pop every event currently queued, in order."""
    collected = []
    while not queue.empty():
        collected.append(queue.get_nowait())
    return collected


def events_of(collected: list[SessionEvent], event_cls: type[E]) -> list[E]:
    return [event for event in collected if isinstance(event, event_cls)]
