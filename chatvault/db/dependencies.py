"""FastAPI dependencies for the data provider and request-scoped sessions."""

from collections.abc import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from chatvault.errors import StoreCorruptionError
from chatvault.routers.errors import to_http_exception
from chatvault.services.provider import DataProvider


def get_provider(request: Request) -> DataProvider:
    """Return the data-provider root attached to the application."""

    return request.app.state.provider


def get_db(request: Request) -> Iterator[Session]:
    """Yield a session bound to the provider's store."""

    db = get_provider(request).session_factory()
    try:
        yield db
    finally:
        db.close()


def require_healthy_store(provider: DataProvider = Depends(get_provider)) -> None:
    """Reject data routes while the store failed its integrity check."""

    health = provider.health
    if health is None or not health.ok:
        exc = StoreCorruptionError(health.errors if health is not None else ["Database is not open."])
        raise to_http_exception(exc) from exc
