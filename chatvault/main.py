"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatvault.config import get_settings
from chatvault.db.dependencies import require_healthy_store
from chatvault.routers import chats, database, exports, imports, merges
from chatvault.services.provider import DataProvider

logger = logging.getLogger(__name__)


def create_app(provider: DataProvider | None = None) -> FastAPI:
    """Build the API around ``provider``; one is created from settings when omitted."""

    provider = provider or DataProvider(get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.provider = provider
        health = provider.open()
        if not health.ok:
            logger.error("Database failed its integrity check; only reset routes are usable.")
        try:
            yield
        finally:
            provider.close()

    app = FastAPI(title=provider.settings.app_name, version="0.1.0", lifespan=lifespan)
    app.state.provider = provider

    app.add_middleware(
        CORSMiddleware,
        allow_origins=provider.settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    healthy_store = [Depends(require_healthy_store)]
    app.include_router(chats.router, tags=["chats"], dependencies=healthy_store)
    app.include_router(merges.router, tags=["merges"], dependencies=healthy_store)
    app.include_router(exports.router, tags=["exports"], dependencies=healthy_store)
    app.include_router(imports.router, tags=["imports"])
    app.include_router(database.router, tags=["database"])

    @app.get("/health")
    def health() -> dict[str, str]:
        """Simple health check endpoint."""

        return {"status": "ok"}

    return app


app = create_app()
