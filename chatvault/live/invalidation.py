"""Version counter that forces every observing live query to re-execute."""

from __future__ import annotations

import logging
from collections.abc import Callable
from threading import Lock

from chatvault.live.channel import Channel, Subscription

logger = logging.getLogger(__name__)


class InvalidationToken:
    """Monotonic version owned by whoever performs out-of-band writes.

    The external importer writes to the database file directly, so its writes
    never reach the session change tracker. Its completion handler bumps this
    token instead, which every live query observing it treats as a change to
    all of its tables.
    """

    def __init__(self, name: str = "store"):
        self.name = name
        self._lock = Lock()
        self._version = 0
        self._channel: Channel[int] = Channel(f"invalidation:{name}")

    @property
    def version(self) -> int:
        with self._lock:
            return self._version

    def bump(self, reason: str | None = None) -> int:
        with self._lock:
            self._version += 1
            version = self._version
        logger.info("invalidation.bump token=%s version=%d reason=%s", self.name, version, reason)
        self._channel.publish(version)
        return version

    def subscribe(self, listener: Callable[[int], None]) -> Subscription:
        return self._channel.subscribe(listener)

    @property
    def subscriber_count(self) -> int:
        return self._channel.listener_count
