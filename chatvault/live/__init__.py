"""Live-query reactivity engine."""

from chatvault.live.binder import LiveQueryBuilder, LiveQueryDefinition
from chatvault.live.channel import Channel, ChangeNotification, Subscription
from chatvault.live.engine import LiveQueryEngine, LiveQueryHandle, LiveQueryObserver, LiveQueryState
from chatvault.live.invalidation import InvalidationToken
from chatvault.live.tracking import ChangeTracker

__all__ = [
    "Channel",
    "ChangeNotification",
    "ChangeTracker",
    "InvalidationToken",
    "LiveQueryBuilder",
    "LiveQueryDefinition",
    "LiveQueryEngine",
    "LiveQueryHandle",
    "LiveQueryObserver",
    "LiveQueryState",
    "Subscription",
]
