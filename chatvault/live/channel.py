"""Typed publish/subscribe channel with explicit unsubscribe handles."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from itertools import count
from threading import Lock
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ChangeNotification:
    """Tables written by one committed store transaction."""

    tables: frozenset[str]
    committed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def touches(self, tables: frozenset[str]) -> bool:
        return not self.tables.isdisjoint(tables)


class Subscription:
    """Handle returned by ``Channel.subscribe``; unsubscribing is idempotent."""

    def __init__(self, release: Callable[[], None]):
        self._release = release
        self._lock = Lock()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._release()


class Channel(Generic[T]):
    """Synchronous fan-out of typed payloads to registered listeners.

    Listeners run on the publisher's thread. A failing listener is logged and
    does not prevent delivery to the remaining listeners.
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = Lock()
        self._ids = count(1)
        self._listeners: dict[int, Callable[[T], None]] = {}

    def subscribe(self, listener: Callable[[T], None]) -> Subscription:
        with self._lock:
            listener_id = next(self._ids)
            self._listeners[listener_id] = listener
        return Subscription(lambda: self._remove(listener_id))

    def publish(self, payload: T) -> None:
        with self._lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("channel.listener_failed channel=%s", self.name)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _remove(self, listener_id: int) -> None:
        with self._lock:
            self._listeners.pop(listener_id, None)
