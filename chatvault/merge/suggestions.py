"""Auto-merge suggestions for same-named direct-message chats."""

from __future__ import annotations

from collections import Counter
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass

from chatvault.merge.normalize import normalize_conversation_name
from chatvault.models.canonical_conversation import ConversationType
from chatvault.schemas.chat import ChatSummary, MergedChatSummary


@dataclass(frozen=True, slots=True)
class AutoMergeSuggestion:
    """A group of chats that look like the same conversation.

    ``chats`` is ordered by message count descending (ties: lowest id first) and
    ``target`` is its first member.
    """

    key: str
    chats: tuple[ChatSummary, ...]
    target: ChatSummary

    @property
    def absorbed_ids(self) -> list[int]:
        return [chat.id for chat in self.chats if chat.id != self.target.id]


def suggestion_key(normalized_name: str, conversation_type: str) -> str:
    return f"{normalized_name}|{conversation_type}"


def build_auto_merge_suggestions(chats: Iterable[ChatSummary]) -> list[AutoMergeSuggestion]:
    """Group DM chats by normalized name and propose one merge per group.

    A group in which any export source occurs more than once is dropped
    entirely: two same-named chats from one source are most likely two
    different accounts (renamed or deactivated users), not a duplicate.
    """

    groups: dict[str, list[ChatSummary]] = {}
    for chat in chats:
        if chat.type != ConversationType.DM.value:
            continue
        normalized = normalize_conversation_name(chat.name)
        if not normalized:
            continue
        groups.setdefault(suggestion_key(normalized, chat.type), []).append(chat)

    suggestions: list[AutoMergeSuggestion] = []
    for key, members in groups.items():
        if len(members) < 2:
            continue
        if _has_duplicate_source(members):
            continue
        ordered = tuple(sorted(members, key=lambda chat: (-chat.message_count, chat.id)))
        suggestions.append(AutoMergeSuggestion(key=key, chats=ordered, target=ordered[0]))

    suggestions.sort(key=lambda suggestion: suggestion.key)
    return suggestions


def filter_actionable_suggestions(
    suggestions: Iterable[AutoMergeSuggestion],
    ignored_keys: Collection[str],
) -> list[AutoMergeSuggestion]:
    """Drop suggestions the user dismissed."""

    return [suggestion for suggestion in suggestions if suggestion.key not in ignored_keys]


def build_merged_summary(chats: Sequence[ChatSummary]) -> MergedChatSummary:
    """Summarize what a set of chats would look like once merged."""

    if not chats:
        return MergedChatSummary(message_count=0, participant_count=0)

    last_message_times = [chat.last_message_at for chat in chats if chat.last_message_at is not None]
    sources: list[str] = []
    for chat in chats:
        for source in chat.sources:
            if source not in sources:
                sources.append(source)
    return MergedChatSummary(
        message_count=sum(chat.message_count for chat in chats),
        participant_count=sum(chat.participant_count for chat in chats),
        last_message_at=max(last_message_times) if last_message_times else None,
        sources=sources,
    )


def _has_duplicate_source(members: Iterable[ChatSummary]) -> bool:
    counts = Counter(source for chat in members for source in chat.sources)
    return any(count > 1 for count in counts.values())
