"""Auto-merge suggestion, manual merge and cleanup routes."""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from chatvault.db.dependencies import get_db, get_provider
from chatvault.errors import ChatVaultError
from chatvault.merge.suggestions import build_auto_merge_suggestions
from chatvault.routers.errors import to_http_exception
from chatvault.schemas.common import ApiResponse
from chatvault.schemas.merge import (
    AutoMergeResult,
    CleanupResult,
    IgnoreResult,
    MergePreviewRead,
    MergeRequest,
    MergeResult,
    MergeSuggestionRead,
)
from chatvault.services.chats import list_chats
from chatvault.services.merges import (
    apply_auto_merge_suggestions,
    cleanup_orphan_canonical_conversations,
    describe_suggestions,
    merge_conversations,
    preview_merge,
)
from chatvault.services.provider import DataProvider

router = APIRouter()


@router.get("/merge-suggestions", response_model=ApiResponse[list[MergeSuggestionRead]])
def get_merge_suggestions(provider: DataProvider = Depends(get_provider)) -> ApiResponse[list[MergeSuggestionRead]]:
    """List auto-merge suggestions, including dismissed ones flagged as ignored."""

    suggestions = build_auto_merge_suggestions(provider.current_chats())
    return ApiResponse(data=describe_suggestions(suggestions, provider.ignored.keys()))


@router.post("/merge-suggestions/apply", response_model=ApiResponse[AutoMergeResult])
def post_apply_suggestions(
    provider: DataProvider = Depends(get_provider),
    db: Session = Depends(get_db),
) -> ApiResponse[AutoMergeResult]:
    """Apply every suggestion the user has not dismissed."""

    suggestions = build_auto_merge_suggestions(list_chats(db))
    try:
        result = apply_auto_merge_suggestions(db, suggestions, provider.ignored.keys())
    except ChatVaultError as exc:
        raise to_http_exception(exc) from exc
    return ApiResponse(data=result)


@router.put("/merge-suggestions/{key:path}/ignore", response_model=ApiResponse[IgnoreResult])
def put_ignore_suggestion(
    key: str = Path(..., min_length=1),
    provider: DataProvider = Depends(get_provider),
) -> ApiResponse[IgnoreResult]:
    """Dismiss a suggestion key."""

    changed = provider.ignored.ignore(key)
    return ApiResponse(data=IgnoreResult(key=key, ignored=True, changed=changed))


@router.delete("/merge-suggestions/{key:path}/ignore", response_model=ApiResponse[IgnoreResult])
def delete_ignore_suggestion(
    key: str = Path(..., min_length=1),
    provider: DataProvider = Depends(get_provider),
) -> ApiResponse[IgnoreResult]:
    """Restore a dismissed suggestion key."""

    changed = provider.ignored.unignore(key)
    return ApiResponse(data=IgnoreResult(key=key, ignored=False, changed=changed))


@router.post("/merges", response_model=ApiResponse[MergeResult])
def post_merge(payload: MergeRequest, db: Session = Depends(get_db)) -> ApiResponse[MergeResult]:
    """Merge the selected chats into the first selected one."""

    try:
        result = merge_conversations(db, payload.conversation_ids)
    except ChatVaultError as exc:
        raise to_http_exception(exc) from exc
    return ApiResponse(data=result)


@router.post("/merges/preview", response_model=ApiResponse[MergePreviewRead])
def post_merge_preview(payload: MergeRequest, db: Session = Depends(get_db)) -> ApiResponse[MergePreviewRead]:
    """Summarize the selected chats as one merged chat."""

    return ApiResponse(data=preview_merge(list_chats(db), payload.conversation_ids))


@router.post("/maintenance/cleanup", response_model=ApiResponse[CleanupResult])
def post_cleanup(db: Session = Depends(get_db)) -> ApiResponse[CleanupResult]:
    """Delete chats no imported conversation belongs to."""

    try:
        result = cleanup_orphan_canonical_conversations(db)
    except ChatVaultError as exc:
        raise to_http_exception(exc) from exc
    return ApiResponse(data=result)
