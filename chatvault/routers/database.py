"""Database health and reset routes."""

from fastapi import APIRouter, Depends, HTTPException

from chatvault.db.dependencies import get_provider
from chatvault.db.health import DatabaseHealth
from chatvault.schemas.common import ApiResponse
from chatvault.schemas.database import DatabaseHealthRead, ResetRequest
from chatvault.services.provider import DataProvider

router = APIRouter(prefix="/database")


def _health_read(provider: DataProvider, health: DatabaseHealth | None) -> DatabaseHealthRead:
    health = health or DatabaseHealth(ok=False, errors=["Database is not open."])
    return DatabaseHealthRead(
        ok=health.ok,
        errors=health.errors,
        full_check_ran=health.full_check_ran,
        revision=provider.revision,
        reset_pending=provider.state.is_reset_pending(),
    )


@router.get("/health", response_model=ApiResponse[DatabaseHealthRead])
def get_database_health(provider: DataProvider = Depends(get_provider)) -> ApiResponse[DatabaseHealthRead]:
    """Integrity check result recorded at startup."""

    return ApiResponse(data=_health_read(provider, provider.health))


@router.post("/reset", response_model=ApiResponse[DatabaseHealthRead])
def post_reset(payload: ResetRequest, provider: DataProvider = Depends(get_provider)) -> ApiResponse[DatabaseHealthRead]:
    """Delete all imported data and recreate an empty database."""

    if not payload.confirm:
        raise HTTPException(status_code=400, detail="Reset requires confirm=true")
    return ApiResponse(data=_health_read(provider, provider.reset_database()))


@router.post("/reset-request", response_model=ApiResponse[DatabaseHealthRead])
def post_reset_request(provider: DataProvider = Depends(get_provider)) -> ApiResponse[DatabaseHealthRead]:
    """Schedule a reset for the next startup."""

    provider.request_reset()
    return ApiResponse(data=_health_read(provider, provider.health))
