"""Engine and session factories for the SQLite store."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker


def create_store_engine(database_path: Path | str, *, busy_timeout_ms: int = 5000) -> Engine:
    """Create an engine for the database file with the store's connection pragmas."""

    path = Path(database_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        f"sqlite+pysqlite:///{path}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    _install_sqlite_pragmas(engine, busy_timeout_ms=busy_timeout_ms, journal_mode="WAL")
    return engine


def create_memory_engine() -> Engine:
    """Create a single-connection in-memory engine."""

    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _install_sqlite_pragmas(engine, busy_timeout_ms=0, journal_mode=None)
    return engine


def create_session_factory(engine: Engine | None = None) -> sessionmaker[Session]:
    """Return the session factory used by services and live queries; bind later with ``configure``."""

    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def _install_sqlite_pragmas(engine: Engine, *, busy_timeout_ms: int, journal_mode: str | None) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragmas(dbapi_connection, _connection_record) -> None:
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
            if busy_timeout_ms:
                cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
            if journal_mode:
                cursor.execute(f"PRAGMA journal_mode={journal_mode}")
        finally:
            cursor.close()
