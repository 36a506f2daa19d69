"""Static dependency binding for live query definitions."""

from __future__ import annotations

import unittest

from sqlalchemy import func, select, text
from sqlalchemy.orm import aliased

from chatvault.errors import SubscriptionError
from chatvault.live.binder import LiveQueryBuilder, LiveQueryDefinition
from chatvault.models.conversation import Conversation
from chatvault.models.export import Export
from chatvault.models.message import Message
from chatvault.models.person import Person
from tests.helpers import dm, memory_store, seed_export


class BuilderDependencyTests(unittest.TestCase):
    def test_joined_tables_are_dependencies(self) -> None:
        definition = (
            LiveQueryBuilder(Conversation)
            .join(Export, Export.id == Conversation.export_id)
            .columns(Conversation.id, Export.source)
            .build()
        )

        self.assertEqual(definition.tables, frozenset({"conversation", "export"}))

    def test_relation_paths_add_every_hop(self) -> None:
        definition = LiveQueryBuilder(Conversation).load("people.messages.texts").build()

        self.assertEqual(
            definition.tables,
            frozenset({"conversation", "person", "message", "message_text"}),
        )

    def test_aliased_entities_and_table_names_resolve(self) -> None:
        sender = aliased(Person)
        definition = (
            LiveQueryBuilder("message", name="raw_messages")
            .join(sender, sender.id == Message.sender_id)
            .depends_on("reaction")
            .build()
        )

        self.assertEqual(definition.tables, frozenset({"message", "person", "reaction"}))
        self.assertEqual(definition.name, "raw_messages")

    def test_derived_sources_are_rejected(self) -> None:
        with self.assertRaises(SubscriptionError):
            LiveQueryBuilder(select(Export.id).subquery())
        with self.assertRaises(SubscriptionError):
            LiveQueryBuilder(Export).depends_on(text("SELECT 1"))
        with self.assertRaises(SubscriptionError):
            LiveQueryBuilder("no_such_table")

    def test_unknown_relation_path_is_rejected(self) -> None:
        with self.assertRaises(SubscriptionError):
            LiveQueryBuilder(Conversation).load("people.nope")
        with self.assertRaises(SubscriptionError):
            LiveQueryBuilder("conversation").load("people")

    def test_custom_definition_requires_dependencies(self) -> None:
        with self.assertRaises(SubscriptionError):
            LiveQueryDefinition.custom("empty", lambda db: None, depends_on=[])

        definition = LiveQueryDefinition.custom("count", lambda db: 0, depends_on=[Export, "conversation"])
        self.assertEqual(definition.tables, frozenset({"export", "conversation"}))


class BuilderKeyTests(unittest.TestCase):
    def test_same_shape_gives_same_key(self) -> None:
        def build(source: str):
            return LiveQueryBuilder(Export).where(Export.source == source).build()

        self.assertEqual(build("whatsapp").key, build("whatsapp").key)
        self.assertNotEqual(build("whatsapp").key, build("messenger:e2e").key)

    def test_explicit_key_wins(self) -> None:
        definition = LiveQueryBuilder(Export).key("exports:all").build()
        self.assertEqual(definition.key, "exports:all")


class BuilderExecutionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine, self.SessionLocal = memory_store()
        self.db = self.SessionLocal()
        seed_export(self.db, "whatsapp", dm("Sam", 2), dm("Kai", 1))
        seed_export(self.db, "messenger:e2e", dm("Sam", 1))

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def test_entity_queries_return_loaded_entities(self) -> None:
        definition = LiveQueryBuilder(Export).load("conversations").order_by(Export.id).build()

        exports = definition.execute(self.db)

        self.assertEqual([export.source for export in exports], ["whatsapp", "messenger:e2e"])
        self.assertEqual(len(exports[0].conversations), 2)

    def test_column_queries_return_transformed_mappings(self) -> None:
        definition = (
            LiveQueryBuilder(Conversation)
            .columns(Conversation.name.label("name"), func.count(Conversation.id).label("n"))
            .group_by(Conversation.name)
            .order_by(Conversation.name)
            .transform(lambda rows: {row["name"]: row["n"] for row in rows})
            .build()
        )

        self.assertEqual(definition.execute(self.db), {"Kai": 1, "Sam": 2})


if __name__ == "__main__":
    unittest.main()
