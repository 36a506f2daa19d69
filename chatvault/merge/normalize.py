"""Deterministic name helpers for conversation matching."""

from __future__ import annotations

import re

from chatvault.models.canonical_conversation import ConversationType

_MULTISPACE_RE = re.compile(r"\s+")


def normalize_conversation_name(value: str | None) -> str:
    """Collapse whitespace runs, trim and lowercase a display name."""

    if not value:
        return ""
    return _MULTISPACE_RE.sub(" ", value).strip().lower()


def chat_display_name(name: str | None, conversation_type: str) -> str:
    """Return the name shown for a chat, falling back to its kind."""

    if name and name.strip():
        return name
    return "Direct Message" if conversation_type == ConversationType.DM.value else "Group Chat"
