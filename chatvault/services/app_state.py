"""Small key-value state kept in a JSON file next to the database."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from threading import Lock
from typing import Any

logger = logging.getLogger(__name__)

DB_RESET_PENDING_KEY = "db_reset_pending"
AUTO_MERGE_IGNORED_KEY = "auto_merge_ignored"


class AppStateStore:
    """Thread-safe access to a JSON object persisted across restarts.

    The lock guards one process only; a second process writing the same file
    can still interleave with this one.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self._lock = Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        """Replace the value at ``key`` with ``fn(current)`` under one lock and return it."""

        with self._lock:
            data = self._read()
            value = fn(data.get(key, default))
            data[key] = value
            self._write(data)
            return value

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)

    def is_reset_pending(self) -> bool:
        return bool(self.get(DB_RESET_PENDING_KEY, False))

    def set_reset_pending(self, pending: bool) -> None:
        if pending:
            self.set(DB_RESET_PENDING_KEY, True)
        else:
            self.delete(DB_RESET_PENDING_KEY)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.exception("app_state.read_failed path=%s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".state-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
