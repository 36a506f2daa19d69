"""Chat listing routes."""

from fastapi import APIRouter, Depends

from chatvault.db.dependencies import get_provider
from chatvault.schemas.chat import ChatListRead
from chatvault.schemas.common import ApiResponse
from chatvault.services.provider import DataProvider

router = APIRouter()


@router.get("/chats", response_model=ApiResponse[ChatListRead])
def get_chats(provider: DataProvider = Depends(get_provider)) -> ApiResponse[ChatListRead]:
    """List chats from the live chat query."""

    chats = provider.current_chats()
    state = provider.chats.snapshot()
    return ApiResponse(
        data=ChatListRead(
            chats=chats,
            is_loading=state.is_loading,
            updated_at=state.updated_at,
            error=str(state.error) if state.error is not None else None,
        )
    )
