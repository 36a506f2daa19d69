"""Message ORM model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, Integer, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatvault.models.base import Base, IdMixin

if TYPE_CHECKING:
    from chatvault.models.message_content import (
        MessageAudio,
        MessageGif,
        MessageImage,
        MessageText,
        MessageVideo,
    )
    from chatvault.models.person import Person
    from chatvault.models.reaction import Reaction


class Message(Base, IdMixin):
    """One imported message, immutable after import."""

    __tablename__ = "message"
    __table_args__ = (Index("idx_message_sender_time", "sender", "sent_at"),)

    sender_id: Mapped[int] = mapped_column(
        "sender",
        ForeignKey("person.id", ondelete="CASCADE"),
        nullable=False,
    )
    sent_at: Mapped[int] = mapped_column(Integer, nullable=False)
    unsent: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false(), nullable=False)

    sender: Mapped[Person] = relationship(back_populates="messages")
    texts: Mapped[list[MessageText]] = relationship(back_populates="message", passive_deletes=True)
    images: Mapped[list[MessageImage]] = relationship(back_populates="message", passive_deletes=True)
    videos: Mapped[list[MessageVideo]] = relationship(back_populates="message", passive_deletes=True)
    gifs: Mapped[list[MessageGif]] = relationship(back_populates="message", passive_deletes=True)
    audios: Mapped[list[MessageAudio]] = relationship(back_populates="message", passive_deletes=True)
    reactions: Mapped[list[Reaction]] = relationship(back_populates="message", passive_deletes=True)
