"""Payloads describing an export the way the importer writes it."""

from typing import Any

from pydantic import BaseModel, Field, field_validator


def _stripped_name(value: str) -> str:
    name = value.strip()
    if not name:
        raise ValueError("name must not be blank")
    return name


class ReactionCreate(BaseModel):
    reactor: str = Field(..., min_length=1)
    reaction: str

    @field_validator("reactor")
    @classmethod
    def reactor_not_blank(cls, value: str) -> str:
        return _stripped_name(value)


class MessageCreate(BaseModel):
    """One message sent by a named participant."""

    sender: str = Field(..., min_length=1)
    sent_at: int
    unsent: bool = False
    text: str | None = None
    image_uris: list[str] = Field(default_factory=list)
    video_uris: list[str] = Field(default_factory=list)
    gif_uris: list[str] = Field(default_factory=list)
    audio_uris: list[str] = Field(default_factory=list)
    reactions: list[ReactionCreate] = Field(default_factory=list)

    @field_validator("sender")
    @classmethod
    def sender_not_blank(cls, value: str) -> str:
        return _stripped_name(value)


class ConversationCreate(BaseModel):
    """One raw conversation; participants are listed in first-seen order."""

    name: str | None = None
    image_uri: str | None = None
    participants: list[str] = Field(default_factory=list)
    messages: list[MessageCreate] = Field(default_factory=list)

    @field_validator("participants")
    @classmethod
    def participants_unique(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(name.strip() for name in value if name.strip()))


class ExportCreate(BaseModel):
    """A full export as produced by one import run."""

    source: str = Field(..., min_length=1)
    checksum: str | None = None
    meta_json: dict[str, Any] | None = None
    conversations: list[ConversationCreate] = Field(default_factory=list)
