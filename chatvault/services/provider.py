"""Data-provider root: owns the store engine and everything that observes it."""

from __future__ import annotations

import logging

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from chatvault.config import Settings, get_settings
from chatvault.db.health import DatabaseHealth, check_database_health, delete_database_files
from chatvault.db.migrations import upgrade_database
from chatvault.db.session import create_session_factory, create_store_engine
from chatvault.live.channel import Channel, ChangeNotification
from chatvault.live.engine import LiveQueryEngine, LiveQueryHandle
from chatvault.live.invalidation import InvalidationToken
from chatvault.live.tracking import ChangeTracker
from chatvault.models.base import Base
from chatvault.schemas.chat import ChatSummary
from chatvault.schemas.export import ExportRead
from chatvault.services.app_state import AppStateStore
from chatvault.services.chats import chats_query
from chatvault.services.exports import exports_query
from chatvault.services.ignored_suggestions import IgnoredSuggestions
from chatvault.services.importer import Importer, ImportService, SubprocessImporter

logger = logging.getLogger(__name__)


class DataProvider:
    """Lifecycle scope for the engine, change channel, invalidation token and live queries.

    ``open()`` honors a pending reset, migrates, runs the integrity check and
    starts the live queries the API serves. ``close()`` releases all of it.
    """

    def __init__(self, settings: Settings | None = None, *, importer: Importer | None = None):
        self.settings = settings or get_settings()
        self.database_path = self.settings.database_path
        self.state = AppStateStore(self.settings.state_path)
        self.ignored = IgnoredSuggestions(self.state)
        self.changes: Channel[ChangeNotification] = Channel("store_changes")
        self.invalidation = InvalidationToken("store")
        self.tracker = ChangeTracker(self.changes, Base.metadata)
        self.session_factory = create_session_factory(None)
        self.tracker.install(self.session_factory)
        if importer is None and self.settings.importer_command:
            importer = SubprocessImporter(self.settings.importer_command)
        self.imports = ImportService(importer, self.invalidation, self.database_path)
        self.engine: Engine | None = None
        self.live: LiveQueryEngine | None = None
        self.health: DatabaseHealth | None = None
        self.revision: str | None = None
        self.chats: LiveQueryHandle[list[ChatSummary]] | None = None
        self.exports: LiveQueryHandle[list[ExportRead]] | None = None

    def open(self) -> DatabaseHealth:
        if self.state.is_reset_pending():
            try:
                delete_database_files(self.database_path)
            except OSError:
                logger.exception("database.pending_reset_failed path=%s", self.database_path)
            finally:
                self.state.set_reset_pending(False)

        self._connect()
        self.live = LiveQueryEngine(
            self.session_factory,
            self.changes,
            invalidation=self.invalidation,
            max_workers=self.settings.live_query_workers,
        )
        self.chats = self.live.observe(chats_query())
        self.exports = self.live.observe(exports_query())
        logger.info("provider.opened path=%s healthy=%s", self.database_path, self.health.ok)
        return self.health

    def close(self) -> None:
        self.imports.shutdown()
        if self.live is not None:
            self.live.shutdown()
            self.live = None
        self.chats = None
        self.exports = None
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
        logger.info("provider.closed path=%s", self.database_path)

    def request_reset(self) -> None:
        """Schedule deletion of the database file for the next startup."""

        self.state.set_reset_pending(True)
        logger.warning("database.reset_requested path=%s", self.database_path)

    def reset_database(self) -> DatabaseHealth:
        """Discard the database file now and recreate an empty schema."""

        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
        delete_database_files(self.database_path)
        self._connect()
        self.invalidation.bump("reset")
        logger.warning("database.reset path=%s revision=%s", self.database_path, self.revision)
        return self.health

    def current_chats(self, timeout: float = 5.0) -> list[ChatSummary]:
        """Return the live chat list once any in-flight refresh has settled."""

        if self.chats is None:
            raise RuntimeError("DataProvider is not open.")
        self.chats.wait_until_idle(timeout)
        return list(self.chats.data or [])

    def _connect(self) -> None:
        self.engine = create_store_engine(
            self.database_path,
            busy_timeout_ms=self.settings.sqlite_busy_timeout_ms,
        )
        self.session_factory.configure(bind=self.engine)
        try:
            self.revision = upgrade_database(self.engine)
        except SQLAlchemyError as exc:
            logger.exception("database.migration_failed path=%s", self.database_path)
            self.health = DatabaseHealth(ok=False, errors=[str(exc)])
            return
        self.health = check_database_health(self.engine)
        if not self.health.ok:
            logger.error("database.corrupt path=%s errors=%s", self.database_path, self.health.errors)
