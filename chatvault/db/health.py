"""Startup integrity checks and destructive reset of the database file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from chatvault.errors import StoreCorruptionError

logger = logging.getLogger(__name__)

_SIDE_FILE_SUFFIXES = ("-wal", "-shm", "-journal")


@dataclass(slots=True)
class DatabaseHealth:
    """Outcome of the startup integrity check."""

    ok: bool
    errors: list[str] = field(default_factory=list)
    full_check_ran: bool = False


def check_database_health(engine: Engine) -> DatabaseHealth:
    """Run ``quick_check`` and escalate to ``integrity_check`` only on anomalies."""

    try:
        with engine.connect() as connection:
            quick = _pragma_messages(connection, "quick_check")
            if not quick:
                return DatabaseHealth(ok=True)
            logger.warning("database.quick_check_anomaly messages=%d", len(quick))
            full = _pragma_messages(connection, "integrity_check")
    except SQLAlchemyError as exc:
        logger.exception("database.health_check_failed")
        return DatabaseHealth(ok=False, errors=[str(exc)])

    if not full:
        return DatabaseHealth(ok=True, full_check_ran=True)
    return DatabaseHealth(ok=False, errors=full, full_check_ran=True)


def ensure_database_healthy(engine: Engine) -> DatabaseHealth:
    """Return the health result or raise ``StoreCorruptionError`` on failure."""

    health = check_database_health(engine)
    if not health.ok:
        raise StoreCorruptionError(health.errors)
    return health


def delete_database_files(database_path: Path | str) -> bool:
    """Delete the database file and its SQLite side files."""

    path = Path(database_path).expanduser()
    removed = False
    for candidate in [path, *(path.with_name(path.name + suffix) for suffix in _SIDE_FILE_SUFFIXES)]:
        if candidate.exists():
            candidate.unlink()
            removed = True
    logger.info("database.files_deleted path=%s removed=%s", path, removed)
    return removed


def _pragma_messages(connection, pragma: str) -> list[str]:
    rows = connection.execute(text(f"PRAGMA {pragma}")).all()
    return [str(row[0]) for row in rows if str(row[0]) != "ok"]
