"""Canonical conversation merge and orphan cleanup transactions."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Sequence

from sqlalchemy import delete, exists, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatvault.errors import TransactionError, ValidationError
from chatvault.merge.suggestions import (
    AutoMergeSuggestion,
    build_merged_summary,
    filter_actionable_suggestions,
)
from chatvault.models.canonical_conversation import CanonicalConversation, ConversationType
from chatvault.models.conversation import Conversation
from chatvault.schemas.chat import ChatSummary
from chatvault.schemas.merge import (
    AutoMergeResult,
    CleanupResult,
    MergePreviewRead,
    MergeResult,
    MergeSuggestionRead,
)
from chatvault.services.chats import select_chats

logger = logging.getLogger(__name__)


def merge_conversations(db: Session, canonical_ids: Sequence[int]) -> MergeResult:
    """Merge the selected chats into the first one.

    Raw conversations of every other selected chat are re-pointed at the target,
    the emptied canonical rows are removed and an orphan cleanup runs, all in one
    transaction. Raw conversations, people and messages are never touched.
    """

    ordered = list(dict.fromkeys(canonical_ids))
    if len(ordered) < 2:
        raise ValidationError("Select at least two chats to merge.")

    rows = db.scalars(select(CanonicalConversation).where(CanonicalConversation.id.in_(ordered))).all()
    found = {row.id: row for row in rows}
    missing = [chat_id for chat_id in ordered if chat_id not in found]
    if missing:
        raise ValidationError(f"Unknown chat ids: {missing}.")
    not_dm = [chat_id for chat_id in ordered if found[chat_id].type != ConversationType.DM.value]
    if not_dm:
        raise ValidationError(f"Only direct-message chats can be merged; got group chats {not_dm}.")

    target_id, absorbed = ordered[0], ordered[1:]
    try:
        reassigned = _reassign_conversations(db, target_id, absorbed)
        deleted = _delete_emptied(db, absorbed)
        orphans = delete_orphans(db)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("merge.manual_failed target_id=%d merged_ids=%s", target_id, absorbed)
        raise TransactionError(f"Merging chats {ordered} failed and was rolled back.") from exc

    logger.info(
        "merge.manual target_id=%d merged_ids=%s reassigned=%d orphans_removed=%d",
        target_id,
        absorbed,
        reassigned,
        len(orphans),
    )
    return MergeResult(
        target_id=target_id,
        merged_ids=absorbed,
        reassigned_conversations=reassigned,
        deleted_canonical_ids=deleted,
        orphans_removed=orphans,
    )


def apply_auto_merge_suggestions(
    db: Session,
    suggestions: Iterable[AutoMergeSuggestion],
    ignored_keys: Collection[str] = (),
) -> AutoMergeResult:
    """Apply every non-ignored suggestion in a single transaction."""

    actionable = filter_actionable_suggestions(suggestions, ignored_keys)
    if not actionable:
        return AutoMergeResult()

    result = AutoMergeResult()
    try:
        for suggestion in actionable:
            absorbed = suggestion.absorbed_ids
            target_exists = db.scalar(
                select(CanonicalConversation.id).where(CanonicalConversation.id == suggestion.target.id)
            )
            if not absorbed or target_exists is None:
                logger.warning("merge.auto_skipped key=%s target_id=%d", suggestion.key, suggestion.target.id)
                result.skipped_keys.append(suggestion.key)
                continue
            result.reassigned_conversations += _reassign_conversations(db, suggestion.target.id, absorbed)
            result.deleted_canonical_ids.extend(_delete_emptied(db, absorbed))
            result.applied_keys.append(suggestion.key)
        result.orphans_removed = delete_orphans(db)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("merge.auto_failed suggestions=%d", len(actionable))
        raise TransactionError("Applying auto-merge suggestions failed and was rolled back.") from exc

    logger.info(
        "merge.auto applied=%d skipped=%d reassigned=%d",
        len(result.applied_keys),
        len(result.skipped_keys),
        result.reassigned_conversations,
    )
    return result


def cleanup_orphan_canonical_conversations(db: Session) -> CleanupResult:
    """Delete canonical conversations no raw conversation references."""

    try:
        deleted = delete_orphans(db)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("merge.cleanup_failed")
        raise TransactionError("Orphan cleanup failed and was rolled back.") from exc

    if deleted:
        logger.info("merge.cleanup deleted=%d", len(deleted))
    return CleanupResult(deleted_ids=deleted)


def _reassign_conversations(db: Session, target_id: int, source_ids: Sequence[int]) -> int:
    stmt = (
        update(Conversation)
        .where(Conversation.canonical_conversation_id.in_(source_ids))
        .values(canonical_conversation_id=target_id)
        .execution_options(synchronize_session=False)
    )
    return db.execute(stmt).rowcount or 0


def _delete_emptied(db: Session, canonical_ids: Sequence[int]) -> list[int]:
    ids = list(
        db.scalars(
            select(CanonicalConversation.id)
            .where(CanonicalConversation.id.in_(canonical_ids), ~_has_conversations())
            .order_by(CanonicalConversation.id.asc())
        ).all()
    )
    _delete_canonical(db, ids)
    return ids


def delete_orphans(db: Session) -> list[int]:
    ids = list(
        db.scalars(
            select(CanonicalConversation.id)
            .where(~_has_conversations())
            .order_by(CanonicalConversation.id.asc())
        ).all()
    )
    _delete_canonical(db, ids)
    return ids


def _delete_canonical(db: Session, ids: Sequence[int]) -> None:
    if ids:
        db.execute(
            delete(CanonicalConversation)
            .where(CanonicalConversation.id.in_(ids))
            .execution_options(synchronize_session=False)
        )


def _has_conversations():
    return exists().where(Conversation.canonical_conversation_id == CanonicalConversation.id)


def describe_suggestions(
    suggestions: Iterable[AutoMergeSuggestion],
    ignored_keys: Collection[str],
) -> list[MergeSuggestionRead]:
    """Every computed suggestion, flagged with whether the user dismissed it."""

    return [
        MergeSuggestionRead(
            key=suggestion.key,
            target_id=suggestion.target.id,
            chats=list(suggestion.chats),
            summary=build_merged_summary(suggestion.chats),
            ignored=suggestion.key in ignored_keys,
        )
        for suggestion in suggestions
    ]


def preview_merge(chats: Sequence[ChatSummary], canonical_ids: Sequence[int]) -> MergePreviewRead:
    """Summarize the selected chats as they would look once merged."""

    selected = select_chats(chats, canonical_ids)
    return MergePreviewRead(
        target_id=selected[0].id if selected else None,
        chats=selected,
        summary=build_merged_summary(selected),
    )
