"""Canonical conversation merge suggestions."""

from chatvault.merge.normalize import chat_display_name, normalize_conversation_name
from chatvault.merge.suggestions import (
    AutoMergeSuggestion,
    build_auto_merge_suggestions,
    build_merged_summary,
    filter_actionable_suggestions,
)

__all__ = [
    "AutoMergeSuggestion",
    "build_auto_merge_suggestions",
    "build_merged_summary",
    "chat_display_name",
    "filter_actionable_suggestions",
    "normalize_conversation_name",
]
