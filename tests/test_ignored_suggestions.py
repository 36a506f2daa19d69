"""Persistent dismissal of auto-merge suggestions."""

from __future__ import annotations

import tempfile
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from chatvault.merge.suggestions import build_auto_merge_suggestions, filter_actionable_suggestions
from chatvault.services.app_state import AppStateStore
from chatvault.services.ignored_suggestions import IgnoredSuggestions
from tests.helpers import chat


class IgnoredSuggestionsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "state.json"
        self.ignored = IgnoredSuggestions(AppStateStore(self.path))

    def tearDown(self) -> None:
        self.tmp.cleanup()

    def test_ignore_is_idempotent_and_persisted(self) -> None:
        self.assertTrue(self.ignored.ignore("sam|dm"))
        self.assertFalse(self.ignored.ignore("sam|dm"))

        reopened = IgnoredSuggestions(AppStateStore(self.path))
        self.assertEqual(reopened.keys(), {"sam|dm"})

    def test_unignore_toggle_and_clear(self) -> None:
        self.ignored.ignore("a|dm")
        self.ignored.ignore("b|dm")

        self.assertTrue(self.ignored.unignore("a|dm"))
        self.assertFalse(self.ignored.unignore("a|dm"))
        self.assertTrue(self.ignored.toggle("a|dm"))
        self.assertFalse(self.ignored.toggle("b|dm"))
        self.assertEqual(self.ignored.keys(), {"a|dm"})

        self.ignored.clear()
        self.assertEqual(self.ignored.keys(), set())

    def test_dismissal_round_trip_over_unchanged_data(self) -> None:
        chats = [chat(1, "Sam", 4, ("A",)), chat(2, "sam", 2, ("B",)), chat(3, "Jo", 1, ("A",)), chat(4, "jo", 1, ("B",))]

        self.ignored.ignore("sam|dm")
        actionable = filter_actionable_suggestions(build_auto_merge_suggestions(chats), self.ignored.keys())
        self.assertEqual([s.key for s in actionable], ["jo|dm"])

        self.ignored.unignore("sam|dm")
        actionable = filter_actionable_suggestions(build_auto_merge_suggestions(chats), self.ignored.keys())
        self.assertEqual([s.key for s in actionable], ["jo|dm", "sam|dm"])

    def test_concurrent_ignores_are_all_persisted(self) -> None:
        keys = [f"k{idx}|dm" for idx in range(40)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(self.ignored.ignore, keys))

        self.assertTrue(all(results))
        self.assertEqual(IgnoredSuggestions(AppStateStore(self.path)).keys(), set(keys))

    def test_concurrent_unignores_are_all_persisted(self) -> None:
        keys = [f"k{idx}|dm" for idx in range(40)]
        for key in keys:
            self.ignored.ignore(key)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(self.ignored.unignore, keys[:30]))

        self.assertEqual(self.ignored.keys(), set(keys[30:]))

    def test_unreadable_state_file_reads_as_empty(self) -> None:
        self.path.write_text("{not json", encoding="utf-8")

        self.assertEqual(self.ignored.keys(), set())
        self.assertTrue(self.ignored.ignore("x|dm"))
        self.assertEqual(self.ignored.keys(), {"x|dm"})


class AppStateStoreTests(unittest.TestCase):
    def test_reset_flag_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = AppStateStore(Path(tmp) / "nested" / "state.json")
            self.assertFalse(store.is_reset_pending())

            store.set_reset_pending(True)
            self.assertTrue(AppStateStore(store.path).is_reset_pending())

            store.set_reset_pending(False)
            self.assertFalse(store.is_reset_pending())
            self.assertIsNone(store.get("db_reset_pending"))

    def test_update_applies_function_to_current_value(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = AppStateStore(Path(tmp) / "state.json")

            self.assertEqual(store.update("count", lambda value: value + 1, 0), 1)
            self.assertEqual(store.update("count", lambda value: value + 1, 0), 2)
            self.assertEqual(AppStateStore(store.path).get("count"), 2)


if __name__ == "__main__":
    unittest.main()
