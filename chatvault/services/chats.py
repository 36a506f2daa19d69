"""Chat listing backed by the canonical conversation summary query."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from functools import lru_cache
from typing import Any

from sqlalchemy import distinct, func
from sqlalchemy.orm import Session

from chatvault.live.binder import LiveQueryBuilder, LiveQueryDefinition
from chatvault.models.canonical_conversation import CanonicalConversation
from chatvault.models.conversation import Conversation
from chatvault.models.export import Export
from chatvault.models.message import Message
from chatvault.models.person import Person
from chatvault.schemas.chat import ChatSummary


@lru_cache
def chats_query() -> LiveQueryDefinition[list[ChatSummary]]:
    """Live query producing one summary row per canonical conversation."""

    last_message_at = func.max(Message.sent_at)
    return (
        LiveQueryBuilder(CanonicalConversation, name="chats")
        .outerjoin(Conversation, Conversation.canonical_conversation_id == CanonicalConversation.id)
        .outerjoin(Export, Export.id == Conversation.export_id)
        .outerjoin(Person, Person.conversation_id == Conversation.id)
        .outerjoin(Message, Message.sender_id == Person.id)
        .columns(
            CanonicalConversation.id.label("id"),
            CanonicalConversation.name.label("name"),
            CanonicalConversation.type.label("type"),
            func.min(Conversation.image_uri).label("image_uri"),
            func.count(distinct(Person.canonical_person_id)).label("participant_count"),
            func.count(Message.id).label("message_count"),
            last_message_at.label("last_message_at"),
            func.json_group_array(distinct(Export.source)).label("sources_json"),
        )
        .group_by(CanonicalConversation.id, CanonicalConversation.name, CanonicalConversation.type)
        .order_by(last_message_at.desc(), CanonicalConversation.id.asc())
        .transform(rows_to_chats)
        .build()
    )


def rows_to_chats(rows: Iterable[dict[str, Any]]) -> list[ChatSummary]:
    """Convert aggregate rows into chat summaries."""

    chats: list[ChatSummary] = []
    for row in rows:
        sources = sorted({source for source in _parse_sources(row.get("sources_json")) if source})
        chats.append(
            ChatSummary(
                id=int(row["id"]),
                name=row.get("name"),
                type=str(row["type"]),
                image_uri=row.get("image_uri"),
                participant_count=int(row.get("participant_count") or 0),
                message_count=int(row.get("message_count") or 0),
                last_message_at=row.get("last_message_at"),
                sources=tuple(sources),
            )
        )
    return chats


def list_chats(db: Session) -> list[ChatSummary]:
    """Return every chat ordered by latest activity."""

    return chats_query().execute(db)


def select_chats(chats: Sequence[ChatSummary], chat_ids: Sequence[int]) -> list[ChatSummary]:
    """Return the chats matching ``chat_ids`` in selection order."""

    by_id = {chat.id: chat for chat in chats}
    return [by_id[chat_id] for chat_id in dict.fromkeys(chat_ids) if chat_id in by_id]


def _parse_sources(raw: Any) -> list[str]:
    # json_group_array keeps a null entry for chats with no export row.
    if not raw:
        return []
    values = json.loads(raw) if isinstance(raw, str) else raw
    return [str(value) for value in values if value is not None]
