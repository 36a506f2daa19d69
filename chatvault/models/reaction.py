"""Message reaction ORM model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatvault.models.base import Base, IdMixin

if TYPE_CHECKING:
    from chatvault.models.message import Message
    from chatvault.models.person import Person


class Reaction(Base, IdMixin):
    """One reaction left by a person on a message."""

    __tablename__ = "reaction"

    reactor_id: Mapped[int] = mapped_column(
        ForeignKey("person.id", ondelete="CASCADE"),
        nullable=False,
    )
    message_id: Mapped[int] = mapped_column(
        ForeignKey("message.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    reaction: Mapped[str | None] = mapped_column(String(64), nullable=True)

    message: Mapped[Message] = relationship(back_populates="reactions")
    reactor: Mapped[Person] = relationship(back_populates="reactions")
