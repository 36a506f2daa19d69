"""Canonical person ORM model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatvault.models.base import Base, CreatedAtMixin, IdMixin

if TYPE_CHECKING:
    from chatvault.models.person import Person


class CanonicalPerson(Base, IdMixin, CreatedAtMixin):
    """Participant identity deduplicated across conversations."""

    __tablename__ = "canonical_person"

    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar_uri: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    people: Mapped[list[Person]] = relationship(back_populates="canonical")
