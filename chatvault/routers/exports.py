"""Export listing and deletion routes."""

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from chatvault.db.dependencies import get_db, get_provider
from chatvault.errors import ChatVaultError
from chatvault.routers.errors import to_http_exception
from chatvault.schemas.common import ApiResponse
from chatvault.schemas.export import ExportDeleteResult, ExportRead
from chatvault.services.exports import delete_export
from chatvault.services.provider import DataProvider

router = APIRouter()


@router.get("/exports", response_model=ApiResponse[list[ExportRead]])
def get_exports(provider: DataProvider = Depends(get_provider)) -> ApiResponse[list[ExportRead]]:
    """List imported exports from the live exports query."""

    provider.exports.wait_until_idle(5.0)
    return ApiResponse(data=list(provider.exports.data or []))


@router.delete("/exports/{export_id}", response_model=ApiResponse[ExportDeleteResult])
def remove_export(
    export_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
) -> ApiResponse[ExportDeleteResult]:
    """Delete an export with its conversations, people and messages."""

    try:
        result = delete_export(db, export_id)
    except ChatVaultError as exc:
        raise to_http_exception(exc) from exc
    if result is None:
        raise HTTPException(status_code=404, detail="Export not found")
    return ApiResponse(data=result)
