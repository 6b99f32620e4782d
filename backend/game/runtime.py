"""Wire the session manager, score ledger and recorder into one runtime."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from game.logic.timer import TimerConfig
from game.scores.ledger import ScoreLedger
from game.scores.recorder import ScoreRecorder
from game.scores.settings import LedgerSettings
from game.session.manager import SessionManager
from game.session.settings import SessionSettings
from shared.db import Database, SqliteDocumentStore
from shared.logging import setup_logging

if TYPE_CHECKING:
    from shared.auth.identity import IdentityProvider
    from shared.dal.document_store import DocumentStore

logger = structlog.get_logger()


@dataclass
class GameRuntime:
    """Running session core. Call close() to stop timers, drain writes and release the database."""

    session_manager: SessionManager
    ledger: ScoreLedger
    recorder: ScoreRecorder
    owned_db: Database | None = None

    async def close(self) -> None:
        await self.session_manager.stop_reaper()
        self.session_manager.shutdown()
        await self.recorder.stop()
        if self.owned_db is not None:
            self.owned_db.close()
        logger.info("game runtime stopped")


def create_runtime(
    session_settings: SessionSettings | None = None,
    ledger_settings: LedgerSettings | None = None,
    store: DocumentStore | None = None,
    identity: IdentityProvider | None = None,
) -> GameRuntime:
    """Build and start a runtime. Must be called from a running event loop.

    When no store is passed, the runtime opens (and owns) the SQLite database
    at ledger_settings.database_path.
    """
    if session_settings is None:  # pragma: no cover
        session_settings = SessionSettings()
    if ledger_settings is None:  # pragma: no cover
        ledger_settings = LedgerSettings()

    owned_db: Database | None = None
    if store is None:
        db = Database(ledger_settings.database_path)
        db.connect()
        owned_db = db
        store = SqliteDocumentStore(db)

    session_manager = SessionManager(
        timer_config=TimerConfig.from_settings(session_settings),
        retention_seconds=session_settings.retention_seconds,
        reap_interval_seconds=session_settings.reap_interval_seconds,
    )
    session_manager.start_reaper()
    ledger = ScoreLedger.from_settings(store, ledger_settings)
    recorder = ScoreRecorder(session_manager, ledger, identity=identity)
    recorder.start()

    logger.info(
        "game runtime ready",
        idle_timeout_seconds=session_settings.idle_timeout_seconds,
        max_attempts=ledger_settings.max_attempts,
    )
    return GameRuntime(session_manager=session_manager, ledger=ledger, recorder=recorder, owned_db=owned_db)


def start_runtime(identity: IdentityProvider | None = None) -> GameRuntime:  # pragma: no cover
    """Production entry: environment-driven settings plus logging setup."""
    session_settings = SessionSettings()
    setup_logging(log_dir=session_settings.log_dir)
    return create_runtime(session_settings=session_settings, ledger_settings=LedgerSettings(), identity=identity)
