"""Export ORM model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chatvault.models.base import EPOCH_NOW, Base, IdMixin, epoch_now

if TYPE_CHECKING:
    from chatvault.models.conversation import Conversation


class ExportSource:
    """Known import sources."""

    MESSENGER_FACEBOOK = "messenger:facebook"
    MESSENGER_E2E = "messenger:e2e"
    WHATSAPP = "whatsapp"


class Export(Base, IdMixin):
    """One completed import run; the unit of cascade deletion."""

    __tablename__ = "export"

    source: Mapped[str] = mapped_column(String(64), nullable=False)
    checksum: Mapped[str | None] = mapped_column(String(128), nullable=True)
    imported_at: Mapped[int] = mapped_column(
        Integer,
        default=epoch_now,
        server_default=EPOCH_NOW,
        nullable=False,
    )
    meta_json: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    conversations: Mapped[list[Conversation]] = relationship(
        back_populates="export",
        passive_deletes=True,
    )
