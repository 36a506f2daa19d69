"""SQLAlchemy metadata registry import for Alembic."""

from chatvault.models import (
    CanonicalConversation,
    CanonicalPerson,
    Conversation,
    Export,
    Message,
    MessageAudio,
    MessageGif,
    MessageImage,
    MessageText,
    MessageVideo,
    Person,
    Reaction,
)
from chatvault.models.base import Base

__all__ = [
    "Base",
    "Export",
    "CanonicalConversation",
    "Conversation",
    "CanonicalPerson",
    "Person",
    "Message",
    "MessageText",
    "MessageImage",
    "MessageVideo",
    "MessageGif",
    "MessageAudio",
    "Reaction",
]
