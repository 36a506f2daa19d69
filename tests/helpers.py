"""Store fixtures shared by the test modules."""

from __future__ import annotations

from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from chatvault.db.session import create_memory_engine, create_session_factory
from chatvault.models.base import Base
from chatvault.models.export import Export
from chatvault.schemas.chat import ChatSummary
from chatvault.schemas.ingest import ConversationCreate, ExportCreate, MessageCreate
from chatvault.services.ingest import create_export

BASE_TIME = 1_760_000_000


def memory_store() -> tuple[Engine, sessionmaker[Session]]:
    engine = create_memory_engine()
    Base.metadata.create_all(engine)
    return engine, create_session_factory(engine)


def dm(name: str | None, message_count: int, *, other: str = "Friend", start: int = BASE_TIME) -> ConversationCreate:
    return ConversationCreate(
        name=name,
        participants=["Me", other],
        messages=[
            MessageCreate(sender="Me" if idx % 2 == 0 else other, sent_at=start + idx, text=f"hi {idx}")
            for idx in range(message_count)
        ],
    )


def group(name: str, message_count: int = 1, *, start: int = BASE_TIME) -> ConversationCreate:
    return ConversationCreate(
        name=name,
        participants=["Me", "Ana", "Bo"],
        messages=[MessageCreate(sender="Ana", sent_at=start + idx, text="yo") for idx in range(message_count)],
    )


def seed_export(db: Session, source: str, *conversations: ConversationCreate) -> Export:
    return create_export(db, ExportCreate(source=source, conversations=list(conversations)))


def canonical_ids(export: Export) -> list[int]:
    return [conversation.canonical_conversation_id for conversation in sorted(export.conversations, key=lambda c: c.id)]


def chat(
    chat_id: int,
    name: str | None,
    message_count: int,
    sources: tuple[str, ...],
    *,
    type: str = "dm",
    participant_count: int = 2,
) -> ChatSummary:
    return ChatSummary(
        id=chat_id,
        name=name,
        type=type,
        message_count=message_count,
        participant_count=participant_count,
        last_message_at=BASE_TIME + chat_id,
        sources=sources,
    )
