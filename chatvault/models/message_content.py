"""Content rows attached to a message."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatvault.models.base import Base, IdMixin

if TYPE_CHECKING:
    from chatvault.models.message import Message


class _MessageContentMixin:
    message_id: Mapped[int] = mapped_column(
        ForeignKey("message.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )


class MessageText(Base, IdMixin, _MessageContentMixin):
    __tablename__ = "message_text"

    text: Mapped[str | None] = mapped_column(Text, nullable=True)

    message: Mapped[Message] = relationship(back_populates="texts")


class MessageImage(Base, IdMixin, _MessageContentMixin):
    __tablename__ = "message_image"

    image_uri: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    message: Mapped[Message] = relationship(back_populates="images")


class MessageVideo(Base, IdMixin, _MessageContentMixin):
    __tablename__ = "message_video"

    video_uri: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    message: Mapped[Message] = relationship(back_populates="videos")


class MessageGif(Base, IdMixin, _MessageContentMixin):
    __tablename__ = "message_gif"

    gif_uri: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    message: Mapped[Message] = relationship(back_populates="gifs")


class MessageAudio(Base, IdMixin, _MessageContentMixin):
    __tablename__ = "message_audio"

    audio_uri: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    length_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)

    message: Mapped[Message] = relationship(back_populates="audios")
