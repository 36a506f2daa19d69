"""Merge request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from chatvault.schemas.chat import ChatSummary, MergedChatSummary


class MergeRequest(BaseModel):
    """Chats selected by the user; the first id is the merge target."""

    conversation_ids: list[int] = Field(default_factory=list)


class MergeResult(BaseModel):
    """Outcome of a manual merge transaction."""

    target_id: int
    merged_ids: list[int]
    reassigned_conversations: int
    deleted_canonical_ids: list[int]
    orphans_removed: list[int] = Field(default_factory=list)


class AutoMergeResult(BaseModel):
    """Outcome of applying every actionable auto-merge suggestion."""

    applied_keys: list[str] = Field(default_factory=list)
    skipped_keys: list[str] = Field(default_factory=list)
    reassigned_conversations: int = 0
    deleted_canonical_ids: list[int] = Field(default_factory=list)
    orphans_removed: list[int] = Field(default_factory=list)


class CleanupResult(BaseModel):
    """Canonical conversations removed by an orphan cleanup pass."""

    deleted_ids: list[int] = Field(default_factory=list)


class MergeSuggestionRead(BaseModel):
    """One auto-merge suggestion with its dismissal state."""

    key: str
    target_id: int
    chats: list[ChatSummary]
    summary: MergedChatSummary
    ignored: bool = False


class MergePreviewRead(BaseModel):
    """Chats selected for a manual merge and their combined summary."""

    target_id: int | None = None
    chats: list[ChatSummary]
    summary: MergedChatSummary


class IgnoreResult(BaseModel):
    key: str
    ignored: bool
    changed: bool
