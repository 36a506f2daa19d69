"""Migrations, integrity checks and the reset flow."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from sqlalchemy import func, inspect, select

from chatvault.config import Settings
from chatvault.db.health import check_database_health, delete_database_files, ensure_database_healthy
from chatvault.db.migrations import current_revision, head_revision, upgrade_database
from chatvault.db.session import create_store_engine
from chatvault.errors import StoreCorruptionError
from chatvault.models.base import Base
from chatvault.models.export import Export
from chatvault.services.provider import DataProvider
from tests.helpers import dm, seed_export

WAIT = 5.0


class MigrationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "chats.db"
        self.engine = create_store_engine(self.path)

    def tearDown(self) -> None:
        self.engine.dispose()
        self.tmp.cleanup()

    def test_migrations_build_the_mapped_schema(self) -> None:
        revision = upgrade_database(self.engine)

        self.assertEqual(revision, head_revision())
        self.assertEqual(current_revision(self.engine), head_revision())
        inspector = inspect(self.engine)
        self.assertEqual(set(inspector.get_table_names()) - {"alembic_version"}, set(Base.metadata.tables))
        for name, table in Base.metadata.tables.items():
            migrated = {column["name"] for column in inspector.get_columns(name)}
            self.assertEqual(migrated, {column.name for column in table.columns}, name)

    def test_upgrade_is_repeatable(self) -> None:
        upgrade_database(self.engine)
        self.assertEqual(upgrade_database(self.engine), head_revision())

    def test_healthy_database_passes_quick_check(self) -> None:
        upgrade_database(self.engine)

        health = ensure_database_healthy(self.engine)

        self.assertTrue(health.ok)
        self.assertFalse(health.full_check_ran)


class CorruptionTests(unittest.TestCase):
    def test_unreadable_file_fails_health_check(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "chats.db"
            path.write_bytes(b"this is not a sqlite database" * 200)
            engine = create_store_engine(path)
            try:
                health = check_database_health(engine)
                self.assertFalse(health.ok)
                self.assertTrue(health.errors)
                with self.assertRaises(StoreCorruptionError) as ctx:
                    ensure_database_healthy(engine)
                self.assertEqual(ctx.exception.errors, health.errors)
            finally:
                engine.dispose()

    def test_delete_removes_side_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "chats.db"
            for suffix in ("", "-wal", "-shm"):
                Path(f"{path}{suffix}").write_bytes(b"x")

            self.assertTrue(delete_database_files(path))
            self.assertEqual(list(Path(tmp).iterdir()), [])
            self.assertFalse(delete_database_files(path))


class ProviderResetTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.settings = Settings(data_dir=Path(self.tmp.name), live_query_workers=2)

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def _open_with_one_export(self) -> DataProvider:
        provider = DataProvider(self.settings)
        provider.open()
        with provider.session_factory() as db:
            seed_export(db, "whatsapp", dm("Sam", 2))
        return provider

    def _export_count(self, provider: DataProvider) -> int:
        with provider.session_factory() as db:
            return db.scalar(select(func.count()).select_from(Export))

    def test_open_reports_health_and_serves_live_chats(self) -> None:
        provider = self._open_with_one_export()
        try:
            self.assertTrue(provider.health.ok)
            self.assertEqual(provider.revision, head_revision())
            chats = provider.current_chats(WAIT)
            self.assertEqual([chat.name for chat in chats], ["Sam"])
        finally:
            provider.close()

    def test_requested_reset_runs_on_next_open(self) -> None:
        provider = self._open_with_one_export()
        provider.request_reset()
        provider.close()

        reopened = DataProvider(self.settings)
        self.assertTrue(reopened.state.is_reset_pending())
        try:
            reopened.open()
            self.assertFalse(reopened.state.is_reset_pending())
            self.assertEqual(self._export_count(reopened), 0)
        finally:
            reopened.close()

    def test_immediate_reset_recreates_schema_and_refreshes_live_queries(self) -> None:
        provider = self._open_with_one_export()
        try:
            self.assertEqual(len(provider.current_chats(WAIT)), 1)
            version = provider.invalidation.version

            health = provider.reset_database()

            self.assertTrue(health.ok)
            self.assertEqual(provider.invalidation.version, version + 1)
            self.assertEqual(self._export_count(provider), 0)
            self.assertEqual(provider.current_chats(WAIT), [])
        finally:
            provider.close()


if __name__ == "__main__":
    unittest.main()
