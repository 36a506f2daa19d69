"""Live query re-execution, coalescing, disposal and invalidation."""

from __future__ import annotations

import unittest
from threading import Event, Lock

from chatvault.db.session import create_memory_engine, create_session_factory
from chatvault.errors import SubscriptionError
from chatvault.live.binder import LiveQueryDefinition
from chatvault.live.channel import Channel, ChangeNotification
from chatvault.live.engine import LiveQueryEngine, LiveQueryObserver
from chatvault.live.invalidation import InvalidationToken

WAIT = 5.0


class _Counter:
    """Query body that counts executions and can block a chosen call."""

    def __init__(self, block_on: int | None = None, fail_on: set[int] | None = None):
        self.calls = 0
        self.block_on = block_on
        self.fail_on = fail_on or set()
        self.entered = Event()
        self.gate = Event()
        self._lock = Lock()

    def __call__(self, _db) -> int:
        with self._lock:
            self.calls += 1
            call = self.calls
        if call == self.block_on:
            self.entered.set()
            self.gate.wait(WAIT)
        if call in self.fail_on:
            raise RuntimeError(f"query failed on call {call}")
        return call


def _changed(*tables: str) -> ChangeNotification:
    return ChangeNotification(tables=frozenset(tables))


class LiveQueryEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db_engine = create_memory_engine()
        self.changes: Channel[ChangeNotification] = Channel("test_changes")
        self.token = InvalidationToken("test")
        self.engine = LiveQueryEngine(
            create_session_factory(self.db_engine),
            self.changes,
            invalidation=self.token,
            max_workers=4,
        )

    def tearDown(self) -> None:
        self.engine.shutdown()
        self.db_engine.dispose()

    def _observe(self, counter: _Counter, *tables: str, name: str = "counter"):
        definition = LiveQueryDefinition.custom(name, counter, depends_on=list(tables))
        handle = self.engine.observe(definition)
        self.assertTrue(handle.wait_until_idle(WAIT))
        return handle

    def test_initial_execution_settles_loading(self) -> None:
        counter = _Counter()
        handle = self._observe(counter, "export", "conversation")

        state = handle.snapshot()
        self.assertFalse(state.is_loading)
        self.assertFalse(state.is_fetching)
        self.assertEqual(state.data, 1)
        self.assertIsNotNone(state.updated_at)

    def test_only_dependent_tables_trigger_reexecution(self) -> None:
        counter = _Counter()
        handle = self._observe(counter, "export", "conversation")

        self.changes.publish(_changed("conversation"))
        handle.wait_until_idle(WAIT)
        self.assertEqual(counter.calls, 2)

        self.changes.publish(_changed("reaction"))
        handle.wait_until_idle(WAIT)
        self.assertEqual(counter.calls, 2)
        self.assertEqual(handle.execution_count, 2)

    def test_notifications_during_execution_coalesce_into_one_rerun(self) -> None:
        counter = _Counter(block_on=2)
        handle = self._observe(counter, "message")

        self.changes.publish(_changed("message"))
        self.assertTrue(counter.entered.wait(WAIT))
        for _ in range(5):
            self.changes.publish(_changed("message"))
        self.assertTrue(handle.snapshot().is_fetching)
        counter.gate.set()

        self.assertTrue(handle.wait_until_idle(WAIT))
        self.assertEqual(counter.calls, 3)
        self.assertEqual(handle.data, 3)

    def test_result_arriving_after_dispose_is_discarded(self) -> None:
        counter = _Counter(block_on=2)
        handle = self._observe(counter, "message")
        updates = []
        handle.subscribe(updates.append)

        self.changes.publish(_changed("message"))
        self.assertTrue(counter.entered.wait(WAIT))
        handle.dispose()
        counter.gate.set()

        self.assertTrue(handle.wait_until_idle(WAIT))
        self.assertEqual(handle.data, 1)
        self.assertEqual(handle.execution_count, 1)
        self.assertEqual(updates, [])
        self.assertEqual(self.engine.active_handles, 0)

        self.changes.publish(_changed("message"))
        self.assertEqual(counter.calls, 2)

    def test_invalidation_bump_reruns_every_observer(self) -> None:
        first_counter, second_counter = _Counter(), _Counter()
        first = self._observe(first_counter, "export", name="first")
        second = self._observe(second_counter, "person", name="second")

        self.token.bump("test")
        first.wait_until_idle(WAIT)
        second.wait_until_idle(WAIT)

        self.assertEqual((first_counter.calls, second_counter.calls), (2, 2))

    def test_failure_keeps_last_good_data_and_isolates_other_queries(self) -> None:
        failing_counter, healthy_counter = _Counter(fail_on={2}), _Counter()
        failing = self._observe(failing_counter, "message", name="failing")
        healthy = self._observe(healthy_counter, "message", name="healthy")

        self.changes.publish(_changed("message"))
        failing.wait_until_idle(WAIT)
        healthy.wait_until_idle(WAIT)

        self.assertIsInstance(failing.error, RuntimeError)
        self.assertEqual(failing.data, 1)
        self.assertIsNone(healthy.error)
        self.assertEqual(healthy.data, 2)

        self.changes.publish(_changed("message"))
        failing.wait_until_idle(WAIT)
        self.assertIsNone(failing.error)
        self.assertEqual(failing.data, 3)

    def test_empty_dependency_set_is_rejected(self) -> None:
        definition = LiveQueryDefinition(name="blind", key="blind", tables=frozenset(), run=lambda db: None)

        with self.assertRaises(SubscriptionError):
            self.engine.observe(definition)
        self.assertEqual(self.engine.active_handles, 0)


class LiveQueryObserverTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db_engine = create_memory_engine()
        self.changes: Channel[ChangeNotification] = Channel("test_changes")
        self.engine = LiveQueryEngine(create_session_factory(self.db_engine), self.changes)
        self.observer = LiveQueryObserver(self.engine)

    def tearDown(self) -> None:
        self.observer.dispose()
        self.engine.shutdown()
        self.db_engine.dispose()

    @staticmethod
    def _by_source(source: str) -> LiveQueryDefinition[str]:
        return LiveQueryDefinition.custom(
            "by_source",
            lambda db: source,
            depends_on=["export"],
            key=f"by_source:{source}",
        )

    def test_rebinding_same_shape_reuses_subscription(self) -> None:
        first = self.observer.bind(self._by_source("whatsapp"))
        second = self.observer.bind(self._by_source("whatsapp"))

        self.assertIs(first, second)
        self.assertEqual(self.engine.active_handles, 1)
        self.assertEqual(self.changes.listener_count, 1)

    def test_inputs_change_resubscribes(self) -> None:
        first = self.observer.use(self._by_source, "whatsapp")
        again = self.observer.use(self._by_source, "whatsapp")
        other = self.observer.use(self._by_source, "messenger:e2e")

        self.assertIs(first, again)
        self.assertIsNot(first, other)
        self.assertTrue(first.disposed)
        self.assertEqual(self.engine.active_handles, 1)
        self.assertTrue(other.wait_until_idle(WAIT))
        self.assertEqual(other.data, "messenger:e2e")


if __name__ == "__main__":
    unittest.main()
