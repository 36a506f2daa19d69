"""Persistent list of dismissed auto-merge suggestion keys."""

from __future__ import annotations

import logging
from typing import Any

from chatvault.services.app_state import AUTO_MERGE_IGNORED_KEY, AppStateStore

logger = logging.getLogger(__name__)


def _as_key_set(raw: Any) -> set[str]:
    return {str(key) for key in raw} if isinstance(raw, list) else set()


class IgnoredSuggestions:
    """Dismissed keys are filtered out of the actionable set, never deleted from the data."""

    def __init__(self, store: AppStateStore):
        self.store = store

    def keys(self) -> set[str]:
        return _as_key_set(self.store.get(AUTO_MERGE_IGNORED_KEY, []))

    def contains(self, key: str) -> bool:
        return key in self.keys()

    def ignore(self, key: str) -> bool:
        """Dismiss ``key``; returns False when it was already dismissed."""

        changed = self._mutate(key, dismiss=True)
        if changed:
            logger.info("suggestions.ignored key=%s", key)
        return changed

    def unignore(self, key: str) -> bool:
        changed = self._mutate(key, dismiss=False)
        if changed:
            logger.info("suggestions.unignored key=%s", key)
        return changed

    def toggle(self, key: str) -> bool:
        """Flip the dismissal state of ``key`` and return the new state."""

        state = {"dismissed": False}

        def flip(raw: Any) -> list[str]:
            keys = _as_key_set(raw)
            if key in keys:
                keys.discard(key)
            else:
                keys.add(key)
                state["dismissed"] = True
            return sorted(keys)

        self.store.update(AUTO_MERGE_IGNORED_KEY, flip, [])
        logger.info("suggestions.toggled key=%s dismissed=%s", key, state["dismissed"])
        return state["dismissed"]

    def clear(self) -> None:
        self.store.delete(AUTO_MERGE_IGNORED_KEY)

    def _mutate(self, key: str, *, dismiss: bool) -> bool:
        state = {"changed": False}

        def apply(raw: Any) -> list[str]:
            keys = _as_key_set(raw)
            if dismiss and key not in keys:
                keys.add(key)
                state["changed"] = True
            elif not dismiss and key in keys:
                keys.discard(key)
                state["changed"] = True
            return sorted(keys)

        self.store.update(AUTO_MERGE_IGNORED_KEY, apply, [])
        return state["changed"]
