"""Import control routes."""

from fastapi import APIRouter, Depends

from chatvault.db.dependencies import get_provider, require_healthy_store
from chatvault.errors import ChatVaultError
from chatvault.routers.errors import to_http_exception
from chatvault.schemas.common import ApiResponse
from chatvault.schemas.importer import ImportRequest, ImportStateRead
from chatvault.services.provider import DataProvider

router = APIRouter(prefix="/imports")


@router.post(
    "",
    response_model=ApiResponse[ImportStateRead],
    status_code=202,
    dependencies=[Depends(require_healthy_store)],
)
def post_import(payload: ImportRequest, provider: DataProvider = Depends(get_provider)) -> ApiResponse[ImportStateRead]:
    """Start importing archives in the background."""

    try:
        provider.imports.start(payload.file_paths)
    except ChatVaultError as exc:
        raise to_http_exception(exc) from exc
    return ApiResponse(data=provider.imports.state())


@router.post("/cancel", response_model=ApiResponse[ImportStateRead])
def post_cancel_import(provider: DataProvider = Depends(get_provider)) -> ApiResponse[ImportStateRead]:
    """Ask the running import to stop."""

    provider.imports.cancel()
    return ApiResponse(data=provider.imports.state())


@router.get("/status", response_model=ApiResponse[ImportStateRead])
def get_import_status(provider: DataProvider = Depends(get_provider)) -> ApiResponse[ImportStateRead]:
    """Current import status and progress."""

    return ApiResponse(data=provider.imports.state())
