"""Chat summary schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ChatSummary(BaseModel):
    """One canonical conversation as listed to the user."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    name: str | None = None
    type: str
    image_uri: str | None = None
    participant_count: int = 0
    message_count: int = 0
    last_message_at: int | None = None
    sources: tuple[str, ...] = Field(default_factory=tuple)


class ChatListRead(BaseModel):
    """Chats served from the live query cache."""

    chats: list[ChatSummary]
    is_loading: bool
    updated_at: datetime | None = None
    error: str | None = None


class MergedChatSummary(BaseModel):
    """Combined statistics for a set of chats about to be merged."""

    message_count: int
    participant_count: int
    last_message_at: int | None = None
    sources: list[str] = Field(default_factory=list)
