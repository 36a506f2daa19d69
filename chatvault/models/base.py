"""Declarative base and shared column mixins."""

import time

from sqlalchemy import Integer, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

EPOCH_NOW = text("(CAST(strftime('%s', 'now') AS INTEGER))")


def epoch_now() -> int:
    return int(time.time())


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class IdMixin:
    """Integer surrogate primary key."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class CreatedAtMixin:
    """Creation time stored as epoch seconds."""

    created_at: Mapped[int] = mapped_column(
        Integer,
        default=epoch_now,
        server_default=EPOCH_NOW,
        nullable=False,
    )
