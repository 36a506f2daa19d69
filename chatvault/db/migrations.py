"""Apply versioned Alembic migrations to the store."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import Engine

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "migrations"


def build_alembic_config() -> Config:
    """Return an Alembic config pointing at the packaged migration scripts."""

    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    return config


def upgrade_database(engine: Engine, revision: str = "head") -> str | None:
    """Upgrade the database to ``revision`` and return the resulting revision id."""

    config = build_alembic_config()
    with engine.begin() as connection:
        config.attributes["connection"] = connection
        command.upgrade(config, revision)
    current = current_revision(engine)
    logger.info("database.migrated revision=%s", current)
    return current


def current_revision(engine: Engine) -> str | None:
    """Return the revision currently stamped on the database."""

    with engine.connect() as connection:
        return MigrationContext.configure(connection).get_current_revision()


def head_revision() -> str | None:
    """Return the newest revision shipped with the package."""

    return ScriptDirectory.from_config(build_alembic_config()).get_current_head()
