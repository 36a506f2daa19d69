"""Canonical conversation ORM model."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatvault.models.base import Base, CreatedAtMixin, IdMixin

if TYPE_CHECKING:
    from chatvault.models.conversation import Conversation


class ConversationType(str, Enum):
    """Conversation kinds shared by raw and canonical conversations."""

    DM = "dm"
    GROUP = "group"


class CanonicalConversation(Base, IdMixin, CreatedAtMixin):
    """User-facing conversation that one or more raw conversations resolve to."""

    __tablename__ = "canonical_conversation"
    __table_args__ = (
        CheckConstraint("type in ('dm','group')", name="ck_canonical_conversation_type"),
    )

    type: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    conversations: Mapped[list[Conversation]] = relationship(back_populates="canonical")
