"""Session event hooks that publish one change notification per commit."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import MetaData, event, inspect
from sqlalchemy.orm import ORMExecuteState, Session, UOWTransaction

from chatvault.db.graph import cascade_closure
from chatvault.live.channel import Channel, ChangeNotification

logger = logging.getLogger(__name__)

_PENDING_KEY = "chatvault.pending_changes"


@dataclass(slots=True)
class _PendingChanges:
    written: set[str] = field(default_factory=set)
    deleted: set[str] = field(default_factory=set)


class ChangeTracker:
    """Collect the tables a session writes and publish them when it commits.

    ORM unit-of-work flushes and ORM-enabled ``insert``/``update``/``delete``
    statements are both attributed to their tables. Deletes are expanded with
    every table the schema rewrites through ``ON DELETE`` actions. Raw SQL text
    is not attributed; out-of-band writers bump an ``InvalidationToken`` instead.
    """

    def __init__(self, channel: Channel[ChangeNotification], metadata: MetaData):
        self.channel = channel
        self.metadata = metadata
        self._targets: list[Any] = []

    def install(self, target: Any) -> None:
        """Attach to a ``sessionmaker``, ``Session`` subclass or session instance."""

        event.listen(target, "after_flush", self._after_flush)
        event.listen(target, "do_orm_execute", self._do_orm_execute)
        event.listen(target, "after_commit", self._after_commit)
        event.listen(target, "after_rollback", self._after_rollback)
        self._targets.append(target)

    def uninstall(self) -> None:
        for target in self._targets:
            event.remove(target, "after_flush", self._after_flush)
            event.remove(target, "do_orm_execute", self._do_orm_execute)
            event.remove(target, "after_commit", self._after_commit)
            event.remove(target, "after_rollback", self._after_rollback)
        self._targets.clear()

    def _after_flush(self, session: Session, _flush_context: UOWTransaction) -> None:
        pending = _pending(session)
        for instance in session.new:
            pending.written.add(_table_name(instance))
        for instance in session.dirty:
            if session.is_modified(instance, include_collections=False):
                pending.written.add(_table_name(instance))
        for instance in session.deleted:
            name = _table_name(instance)
            pending.written.add(name)
            pending.deleted.add(name)

    def _do_orm_execute(self, state: ORMExecuteState) -> None:
        if not (state.is_insert or state.is_update or state.is_delete):
            return
        table = getattr(state.statement, "table", None)
        name = getattr(table, "name", None)
        if not name:
            return
        pending = _pending(state.session)
        pending.written.add(name)
        if state.is_delete:
            pending.deleted.add(name)

    def _after_commit(self, session: Session) -> None:
        pending: _PendingChanges | None = session.info.pop(_PENDING_KEY, None)
        if pending is None or not pending.written:
            return
        tables = pending.written | cascade_closure(self.metadata, pending.deleted)
        logger.debug("live_query.change_committed tables=%s", sorted(tables))
        self.channel.publish(ChangeNotification(tables=frozenset(tables)))

    def _after_rollback(self, session: Session) -> None:
        session.info.pop(_PENDING_KEY, None)


def _pending(session: Session) -> _PendingChanges:
    pending = session.info.get(_PENDING_KEY)
    if pending is None:
        pending = _PendingChanges()
        session.info[_PENDING_KEY] = pending
    return pending


def _table_name(instance: Any) -> str:
    return inspect(instance).mapper.local_table.name
