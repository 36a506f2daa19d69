"""ORM models package exports."""

from chatvault.models.canonical_conversation import CanonicalConversation, ConversationType
from chatvault.models.canonical_person import CanonicalPerson
from chatvault.models.conversation import Conversation
from chatvault.models.export import Export, ExportSource
from chatvault.models.message import Message
from chatvault.models.message_content import (
    MessageAudio,
    MessageGif,
    MessageImage,
    MessageText,
    MessageVideo,
)
from chatvault.models.person import Person
from chatvault.models.reaction import Reaction

__all__ = [
    "Export",
    "ExportSource",
    "CanonicalConversation",
    "ConversationType",
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
