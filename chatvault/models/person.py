"""Per-conversation participant ORM model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatvault.models.base import Base, IdMixin

if TYPE_CHECKING:
    from chatvault.models.canonical_person import CanonicalPerson
    from chatvault.models.conversation import Conversation
    from chatvault.models.message import Message
    from chatvault.models.reaction import Reaction


class Person(Base, IdMixin):
    """Participant as seen inside one raw conversation."""

    __tablename__ = "person"
    __table_args__ = (Index("idx_person_conversation", "conversation_id", "id"),)

    conversation_id: Mapped[int] = mapped_column(
        ForeignKey("conversation.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_uri: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    canonical_person_id: Mapped[int] = mapped_column(
        ForeignKey("canonical_person.id"),
        index=True,
        nullable=False,
    )

    conversation: Mapped[Conversation] = relationship(back_populates="people")
    canonical: Mapped[CanonicalPerson] = relationship(back_populates="people")
    messages: Mapped[list[Message]] = relationship(back_populates="sender", passive_deletes=True)
    reactions: Mapped[list[Reaction]] = relationship(back_populates="reactor", passive_deletes=True)
