"""Raw imported conversation ORM model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatvault.models.base import Base, IdMixin

if TYPE_CHECKING:
    from chatvault.models.canonical_conversation import CanonicalConversation
    from chatvault.models.export import Export
    from chatvault.models.person import Person


class Conversation(Base, IdMixin):
    """One conversation as it appeared inside one export."""

    __tablename__ = "conversation"
    __table_args__ = (CheckConstraint("type in ('dm','group')", name="ck_conversation_type"),)

    type: Mapped[str] = mapped_column(String(16), nullable=False)
    image_uri: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    export_id: Mapped[int] = mapped_column(
        ForeignKey("export.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    canonical_conversation_id: Mapped[int] = mapped_column(
        ForeignKey("canonical_conversation.id"),
        index=True,
        nullable=False,
    )

    export: Mapped[Export] = relationship(back_populates="conversations")
    canonical: Mapped[CanonicalConversation] = relationship(back_populates="conversations")
    people: Mapped[list[Person]] = relationship(back_populates="conversation", passive_deletes=True)
