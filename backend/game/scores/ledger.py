"""Durable per-player win/loss/draw tallies."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, TypeVar
from uuid import uuid4

import structlog

from game.logic.enums import Outcome
from game.scores.exceptions import BackendUnavailableError, InvalidOutcomeError, RecordNotFoundError
from shared.dal.document_store import SERVER_TIMESTAMP, StoreUnavailableError
from shared.dal.models import FIELD_CREATED_AT, FIELD_DRAWS, FIELD_LOSSES, FIELD_NAME, FIELD_WINS, PlayerRecord
from shared.retry import RetryExhaustedError, RetryPolicy, retry_async

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from game.scores.settings import LedgerSettings
    from shared.dal.document_store import DocumentStore

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_DISPLAY_NAME = "Player"

_COUNTER_FIELDS: dict[Outcome, str] = {
    Outcome.WIN: FIELD_WINS,
    Outcome.LOSE: FIELD_LOSSES,
    Outcome.DRAW: FIELD_DRAWS,
}


class ScoreLedger:
    """Apply resolved outcomes to player records in the document store.

    Every store call is retried under the configured RetryPolicy; only
    StoreUnavailableError counts as transient. Increments carry an
    idempotency key that stays the same across retries, so a write whose
    acknowledgement was lost is not applied twice. Counters are only ever
    incremented.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        policy: RetryPolicy | None = None,
        default_display_name: str = DEFAULT_DISPLAY_NAME,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._store = store
        self._policy = policy or RetryPolicy()
        self._default_display_name = default_display_name
        self._sleep = sleep

    @classmethod
    def from_settings(cls, store: DocumentStore, settings: LedgerSettings) -> ScoreLedger:
        return cls(
            store,
            policy=settings.retry_policy(),
            default_display_name=settings.default_display_name,
        )

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def register_player(self, player_id: str, name: str) -> PlayerRecord:
        """Create or rename a player's record.

        A new record gets the display name, zeroed counters and a server
        timestamp. An existing record only has its name replaced; counters
        are never touched here.
        """
        if not player_id:
            raise ValueError("player_id must not be empty")
        display_name = name.strip()
        if not display_name:
            raise ValueError("name must not be empty")

        with structlog.contextvars.bound_contextvars(player_id=player_id):
            existing = await self._with_retry(lambda: self._store.get(player_id), "fetch record")
            fields = {FIELD_NAME: display_name} if existing is not None else self._new_record(display_name)
            await self._with_retry(lambda: self._store.set_merge(player_id, fields), "register player")
            logger.info("player registered", name=display_name, created=existing is None)
        return await self.fetch_record(player_id)

    async def apply_outcome(self, player_id: str, outcome: Outcome, *, idempotency_key: str | None = None) -> bool:
        """Increment the counter matching outcome for the player.

        Creates the record (placeholder name, all three counters at zero,
        server timestamp) when none exists. Raises InvalidOutcomeError for
        PENDING and BackendUnavailableError once retries are exhausted.

        Returns True when this call's write was acknowledged, False when the
        store already held idempotency_key. False therefore still means the
        outcome is recorded exactly once: either an earlier call used the same
        key, or an earlier attempt of this call landed and only its
        acknowledgement was lost.
        """
        field = _COUNTER_FIELDS.get(outcome)
        if field is None:
            raise InvalidOutcomeError(outcome)
        if not player_id:
            raise ValueError("player_id must not be empty")
        key = idempotency_key or uuid4().hex

        with structlog.contextvars.bound_contextvars(player_id=player_id, outcome=outcome):
            existing = await self._with_retry(lambda: self._store.get(player_id), "fetch record")
            if existing is None:
                placeholder = self._new_record(self._default_display_name)
                await self._with_retry(lambda: self._store.set_merge(player_id, placeholder), "create record")
                logger.info("score record created", name=self._default_display_name)

            attempts = 0

            async def increment() -> bool:
                nonlocal attempts
                attempts += 1
                return await self._store.increment(player_id, field, 1, idempotency_key=key)

            applied = await self._with_retry(increment, f"increment {field}")
            if applied:
                logger.info("outcome recorded", field=field)
            elif attempts > 1:
                logger.info("outcome recorded by an earlier attempt", field=field, attempts=attempts)
            else:
                logger.info("outcome already recorded under this key", field=field, idempotency_key=key)
        return applied

    @staticmethod
    def _new_record(name: str) -> dict[str, Any]:
        return {
            FIELD_NAME: name,
            FIELD_WINS: 0,
            FIELD_LOSSES: 0,
            FIELD_DRAWS: 0,
            FIELD_CREATED_AT: SERVER_TIMESTAMP,
        }

    async def fetch_record(self, player_id: str, *, synthesize_default: bool = False) -> PlayerRecord:
        """Return the player's current record.

        Missing records raise RecordNotFoundError unless synthesize_default is
        set, in which case an unsaved zeroed record is returned.
        """
        data = await self._with_retry(lambda: self._store.get(player_id), "fetch record")
        if data is None:
            if synthesize_default:
                return PlayerRecord(player_id=player_id, name=self._default_display_name)
            raise RecordNotFoundError(player_id)
        return PlayerRecord.from_document(player_id, data)

    async def _with_retry(self, operation: Callable[[], Awaitable[T]], name: str) -> T:
        try:
            return await retry_async(
                operation,
                policy=self._policy,
                transient=(StoreUnavailableError,),
                name=name,
                sleep=self._sleep,
            )
        except RetryExhaustedError as exc:
            logger.error("score backend unavailable", operation=name, attempts=exc.attempts)
            raise BackendUnavailableError(name, exc.attempts) from exc
