"""Export deletion cascades and canonical conversation survival."""

from __future__ import annotations

import unittest

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select

from chatvault.models.canonical_conversation import CanonicalConversation
from chatvault.models.conversation import Conversation
from chatvault.models.export import Export
from chatvault.models.message import Message
from chatvault.models.message_content import MessageImage, MessageText
from chatvault.models.person import Person
from chatvault.models.reaction import Reaction
from chatvault.schemas.ingest import ConversationCreate, MessageCreate, ReactionCreate
from chatvault.services.exports import delete_export, list_exports
from chatvault.services.merges import merge_conversations
from tests.helpers import BASE_TIME, canonical_ids, dm, memory_store, seed_export


class ExportCascadeTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine, self.SessionLocal = memory_store()
        self.db = self.SessionLocal()

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def _count(self, model) -> int:
        return self.db.scalar(select(func.count()).select_from(model))

    def _rich_dm(self) -> ConversationCreate:
        return ConversationCreate(
            name="Alex",
            participants=["Me", "Alex"],
            messages=[
                MessageCreate(
                    sender="Alex",
                    sent_at=BASE_TIME,
                    text="look",
                    image_uris=["photos/a.jpg"],
                    reactions=[ReactionCreate(reactor="Me", reaction="love")],
                ),
                MessageCreate(sender="Me", sent_at=BASE_TIME + 1, text="nice"),
            ],
        )

    def test_delete_removes_rows_but_keeps_shared_canonical(self) -> None:
        kept_export = seed_export(self.db, "messenger:facebook", dm("Alex", 4))
        doomed_export = seed_export(self.db, "messenger:e2e", self._rich_dm())
        (kept_id,) = canonical_ids(kept_export)
        (doomed_id,) = canonical_ids(doomed_export)
        doomed_export_id = doomed_export.id
        merge_conversations(self.db, [kept_id, doomed_id])

        result = delete_export(self.db, doomed_export_id)

        assert result is not None
        self.assertTrue(result.deleted)
        self.assertEqual(result.orphans_removed, [])
        self.assertIsNone(self.db.scalar(select(Export.id).where(Export.id == doomed_export_id)))
        self.assertEqual(self._count(Conversation), 1)
        self.assertEqual(self._count(Person), 2)
        self.assertEqual(self._count(Message), 4)
        self.assertEqual(self._count(MessageImage), 0)
        self.assertEqual(self._count(Reaction), 0)
        self.assertEqual(self._count(MessageText), 4)
        self.assertEqual(list(self.db.scalars(select(CanonicalConversation.id)).all()), [kept_id])

    def test_delete_last_export_removes_emptied_canonical(self) -> None:
        export = seed_export(self.db, "whatsapp", self._rich_dm())
        (canonical_id,) = canonical_ids(export)

        result = delete_export(self.db, export.id)

        assert result is not None
        self.assertEqual(result.orphans_removed, [canonical_id])
        self.assertEqual(self._count(CanonicalConversation), 0)
        self.assertEqual(self._count(Message), 0)

    def test_delete_unknown_export_returns_none(self) -> None:
        self.assertIsNone(delete_export(self.db, 4242))

    def test_list_exports_counts_conversations(self) -> None:
        first = seed_export(self.db, "messenger:facebook", dm("A", 1), dm("B", 1))
        second = seed_export(self.db, "whatsapp", dm("C", 1))

        exports = list_exports(self.db)

        by_id = {export.id: export for export in exports}
        self.assertEqual(by_id[first.id].conversation_count, 2)
        self.assertEqual(by_id[second.id].conversation_count, 1)
        self.assertEqual(by_id[second.id].source, "whatsapp")


class IngestPayloadTests(unittest.TestCase):
    def test_blank_sender_and_reactor_are_rejected(self) -> None:
        with self.assertRaises(PydanticValidationError):
            MessageCreate(sender="   ", sent_at=BASE_TIME)
        with self.assertRaises(PydanticValidationError):
            ReactionCreate(reactor=" \t", reaction="👍")

    def test_padded_sender_resolves_to_participant(self) -> None:
        engine, SessionLocal = memory_store()
        try:
            with SessionLocal() as db:
                payload = ConversationCreate(
                    name="Alex",
                    participants=["Me", "Alex"],
                    messages=[
                        MessageCreate(
                            sender="  Alex ",
                            sent_at=BASE_TIME,
                            reactions=[ReactionCreate(reactor=" Me", reaction="👍")],
                        )
                    ],
                )
                seed_export(db, "whatsapp", payload)

                self.assertEqual(sorted(db.scalars(select(Person.name))), ["Alex", "Me"])
                self.assertEqual(db.scalar(select(func.count()).select_from(Message)), 1)
        finally:
            engine.dispose()


if __name__ == "__main__":
    unittest.main()
