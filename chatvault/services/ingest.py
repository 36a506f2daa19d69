"""Write an export and its conversations the way the importer lays rows out."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from chatvault.models.canonical_conversation import CanonicalConversation, ConversationType
from chatvault.models.canonical_person import CanonicalPerson
from chatvault.models.conversation import Conversation
from chatvault.models.export import Export
from chatvault.models.message import Message
from chatvault.models.message_content import MessageAudio, MessageGif, MessageImage, MessageText, MessageVideo
from chatvault.models.person import Person
from chatvault.models.reaction import Reaction
from chatvault.schemas.ingest import ConversationCreate, ExportCreate

logger = logging.getLogger(__name__)


def create_export(db: Session, payload: ExportCreate) -> Export:
    """Persist one export.

    Every raw conversation gets its own new canonical conversation, and every
    participant name first seen in a conversation gets a new canonical person.
    Merging happens later, never at import time.
    """

    export = Export(source=payload.source, checksum=payload.checksum, meta_json=payload.meta_json)
    db.add(export)
    for conversation_input in payload.conversations:
        export.conversations.append(_build_conversation(conversation_input))
    db.commit()
    db.refresh(export)
    logger.info(
        "ingest.export_created export_id=%d source=%s conversations=%d",
        export.id,
        export.source,
        len(payload.conversations),
    )
    return export


def conversation_type_for(participant_count: int) -> str:
    """A conversation with exactly two participants is a direct message."""

    return ConversationType.DM.value if participant_count == 2 else ConversationType.GROUP.value


def _build_conversation(payload: ConversationCreate) -> Conversation:
    names = list(payload.participants)
    for message_input in payload.messages:
        for name in [message_input.sender, *(reaction.reactor for reaction in message_input.reactions)]:
            if name not in names:
                names.append(name)

    kind = conversation_type_for(len(names))
    conversation = Conversation(
        type=kind,
        name=payload.name,
        image_uri=payload.image_uri,
        canonical=CanonicalConversation(type=kind, name=payload.name),
    )
    people: dict[str, Person] = {}
    for name in names:
        person = Person(name=name, canonical=CanonicalPerson(display_name=name))
        conversation.people.append(person)
        people[name] = person

    for message_input in payload.messages:
        message = Message(sent_at=message_input.sent_at, unsent=message_input.unsent)
        people[message_input.sender].messages.append(message)
        if message_input.text is not None:
            message.texts.append(MessageText(text=message_input.text))
        message.images.extend(MessageImage(image_uri=uri) for uri in message_input.image_uris)
        message.videos.extend(MessageVideo(video_uri=uri) for uri in message_input.video_uris)
        message.gifs.extend(MessageGif(gif_uri=uri) for uri in message_input.gif_uris)
        message.audios.extend(MessageAudio(audio_uri=uri) for uri in message_input.audio_uris)
        for reaction_input in message_input.reactions:
            message.reactions.append(
                Reaction(reaction=reaction_input.reaction, reactor=people[reaction_input.reactor])
            )
    return conversation
