"""Live query execution, caching and change-driven re-execution."""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from threading import Condition, Lock
from time import perf_counter
from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Session, sessionmaker

from chatvault.errors import SubscriptionError
from chatvault.live.binder import LiveQueryDefinition
from chatvault.live.channel import Channel, ChangeNotification, Subscription
from chatvault.live.invalidation import InvalidationToken

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class LiveQueryState(Generic[T]):
    """Point-in-time view of a live query handle."""

    data: T | None
    error: BaseException | None
    is_loading: bool
    is_fetching: bool
    updated_at: datetime | None
    execution_count: int


class LiveQueryHandle(Generic[T]):
    """Long-lived, self-refreshing result of one live query.

    The first execution leaves ``is_loading`` true until it settles. Matching
    change notifications and invalidation bumps schedule a re-execution; while
    one is in flight, any number of further triggers collapse into a single
    trailing run. Errors are stored on the handle and keep the last good data.
    """

    def __init__(
        self,
        engine: LiveQueryEngine,
        definition: LiveQueryDefinition[T],
        invalidation: InvalidationToken | None,
    ):
        self.definition = definition
        self.invalidation = invalidation
        self._engine = engine
        self._condition = Condition()
        self._data: T | None = None
        self._error: BaseException | None = None
        self._is_loading = True
        self._in_flight = False
        self._rerun_requested = False
        self._disposed = False
        self._updated_at: datetime | None = None
        self._execution_count = 0
        self._updates: Channel[LiveQueryState[T]] = Channel(f"live_query:{definition.name}")
        self._subscriptions: list[Subscription] = []

    @property
    def data(self) -> T | None:
        with self._condition:
            return self._data

    @property
    def error(self) -> BaseException | None:
        with self._condition:
            return self._error

    @property
    def is_loading(self) -> bool:
        with self._condition:
            return self._is_loading

    @property
    def updated_at(self) -> datetime | None:
        with self._condition:
            return self._updated_at

    @property
    def execution_count(self) -> int:
        with self._condition:
            return self._execution_count

    @property
    def disposed(self) -> bool:
        with self._condition:
            return self._disposed

    def snapshot(self) -> LiveQueryState[T]:
        with self._condition:
            return self._snapshot_locked()

    def subscribe(self, listener: Callable[[LiveQueryState[T]], None]) -> Subscription:
        """Call ``listener`` with a fresh snapshot after every settled execution."""

        return self._updates.subscribe(listener)

    def refresh(self) -> None:
        self._schedule("refresh")

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until no execution is in flight; returns False on timeout."""

        with self._condition:
            return self._condition.wait_for(lambda: not self._in_flight, timeout)

    def dispose(self) -> None:
        """Stop observing; an in-flight result arriving afterwards is discarded."""

        with self._condition:
            if self._disposed:
                return
            self._disposed = True
            self._rerun_requested = False
            subscriptions, self._subscriptions = self._subscriptions, []
            self._condition.notify_all()
        for subscription in subscriptions:
            subscription.unsubscribe()
        self._engine._forget(self)
        logger.debug("live_query.disposed name=%s", self.definition.name)

    def _start(self, changes: Channel[ChangeNotification]) -> None:
        self._subscriptions.append(changes.subscribe(self._on_change))
        if self.invalidation is not None:
            self._subscriptions.append(self.invalidation.subscribe(self._on_invalidate))
        self._schedule("initial")

    def _on_change(self, notification: ChangeNotification) -> None:
        if notification.touches(self.definition.tables):
            self._schedule("change")

    def _on_invalidate(self, version: int) -> None:
        self._schedule(f"invalidation:{version}")

    def _schedule(self, reason: str) -> None:
        with self._condition:
            if self._disposed:
                return
            if self._in_flight:
                self._rerun_requested = True
                return
            self._in_flight = True
        logger.debug("live_query.scheduled name=%s reason=%s", self.definition.name, reason)
        try:
            self._engine._submit(self._execute)
        except RuntimeError:
            logger.exception("live_query.schedule_failed name=%s", self.definition.name)
            with self._condition:
                self._in_flight = False
                self._condition.notify_all()

    def _execute(self) -> None:
        while True:
            started = perf_counter()
            data: Any = None
            error: BaseException | None = None
            try:
                data = self._engine._run(self.definition)
            except Exception as exc:
                error = exc
                logger.exception("live_query.execution_failed name=%s", self.definition.name)
            elapsed_ms = (perf_counter() - started) * 1000.0

            with self._condition:
                if self._disposed:
                    self._in_flight = False
                    self._condition.notify_all()
                    logger.debug("live_query.result_discarded name=%s", self.definition.name)
                    return
                if error is None:
                    self._data = data
                self._error = error
                self._is_loading = False
                self._updated_at = datetime.now(timezone.utc)
                self._execution_count += 1
                rerun = self._rerun_requested
                self._rerun_requested = False
                if not rerun:
                    self._in_flight = False
                state = self._snapshot_locked()
                if not rerun:
                    self._condition.notify_all()

            logger.debug(
                "live_query.executed name=%s tables=%s elapsed_ms=%.2f rerun=%s",
                self.definition.name,
                ",".join(sorted(self.definition.tables)),
                elapsed_ms,
                rerun,
            )
            self._updates.publish(state)
            if not rerun:
                return

    def _snapshot_locked(self) -> LiveQueryState[T]:
        return LiveQueryState(
            data=self._data,
            error=self._error,
            is_loading=self._is_loading,
            is_fetching=self._in_flight,
            updated_at=self._updated_at,
            execution_count=self._execution_count,
        )


class LiveQueryEngine:
    """Runs live queries on a worker pool against fresh read sessions."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        changes: Channel[ChangeNotification],
        *,
        invalidation: InvalidationToken | None = None,
        max_workers: int = 4,
    ):
        self.session_factory = session_factory
        self.changes = changes
        self.invalidation = invalidation
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="live-query")
        self._lock = Lock()
        self._handles: set[LiveQueryHandle[Any]] = set()

    def observe(
        self,
        definition: LiveQueryDefinition[T],
        *,
        invalidation: InvalidationToken | None = None,
    ) -> LiveQueryHandle[T]:
        """Start observing ``definition``; the handle stays live until disposed."""

        if not definition.tables:
            raise SubscriptionError(f"Live query '{definition.name}' has an empty dependency set.")
        handle: LiveQueryHandle[T] = LiveQueryHandle(self, definition, invalidation or self.invalidation)
        with self._lock:
            self._handles.add(handle)
        handle._start(self.changes)
        return handle

    @property
    def active_handles(self) -> int:
        with self._lock:
            return len(self._handles)

    def shutdown(self, *, wait: bool = True) -> None:
        with self._lock:
            handles = list(self._handles)
        for handle in handles:
            handle.dispose()
        self._executor.shutdown(wait=wait)

    def _run(self, definition: LiveQueryDefinition[T]) -> T:
        with self.session_factory() as db:
            return definition.execute(db)

    def _submit(self, fn: Callable[[], None]) -> None:
        self._executor.submit(fn)

    def _forget(self, handle: LiveQueryHandle[Any]) -> None:
        with self._lock:
            self._handles.discard(handle)


class LiveQueryObserver(Generic[T]):
    """Keeps one live handle per stable query shape across repeated binds."""

    def __init__(self, engine: LiveQueryEngine, *, invalidation: InvalidationToken | None = None):
        self.engine = engine
        self.invalidation = invalidation
        self._lock = Lock()
        self._handle: LiveQueryHandle[T] | None = None
        self._inputs: tuple[Hashable, ...] | None = None
        self._factory: Callable[..., LiveQueryDefinition[T]] | None = None

    @property
    def handle(self) -> LiveQueryHandle[T] | None:
        return self._handle

    def bind(self, definition: LiveQueryDefinition[T]) -> LiveQueryHandle[T]:
        """Return the current handle when the shape is unchanged, else re-subscribe."""

        with self._lock:
            current = self._handle
            if current is not None and not current.disposed and current.definition.key == definition.key:
                return current
            self._handle = self.engine.observe(definition, invalidation=self.invalidation)
            self._factory = None
            self._inputs = None
        if current is not None:
            current.dispose()
        return self._handle

    def use(self, factory: Callable[..., LiveQueryDefinition[T]], *inputs: Hashable) -> LiveQueryHandle[T]:
        """Rebuild the definition only when ``factory`` or its ``inputs`` change."""

        with self._lock:
            current = self._handle
            if (
                current is not None
                and not current.disposed
                and self._factory is factory
                and self._inputs == inputs
            ):
                return current
        handle = self.bind(factory(*inputs))
        with self._lock:
            self._factory = factory
            self._inputs = inputs
        return handle

    def dispose(self) -> None:
        with self._lock:
            current, self._handle = self._handle, None
            self._inputs = None
            self._factory = None
        if current is not None:
            current.dispose()
