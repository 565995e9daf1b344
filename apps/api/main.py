"""
FastAPI application entrypoint.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api.config import Settings, get_settings
from apps.api.dependencies import AppState, build_app_state
from apps.api.images import ImageHost
from apps.api.routers import admin, events, health, past_questions
from db.session import ConnectivityMonitor
from packages.shared.exceptions import AppException, StorageConnectivityError, app_exception_handler
from packages.shared.storage import BlobStore

logger = logging.getLogger(__name__)


async def start_components(state: AppState) -> None:
    """
    Check the durable store before serving.

    Raises:
        StorageConnectivityError: If the store is unreachable and fallback is off
    """
    if await state.monitor.is_connected():
        await state.schema.ensure()
        logger.info("Record store connected; tables ready")
        return

    if not state.settings.allow_memory_fallback:
        logger.error("Record store unreachable at startup and ALLOW_MEMORY_FALLBACK is off")
        raise StorageConnectivityError("Record store is unavailable at startup")

    logger.warning("Record store unreachable at startup; serving from in-memory fallback")


def create_app(
    settings: Settings | None = None,
    blob_store: BlobStore | None = None,
    image_host: ImageHost | None = None,
    monitor: ConnectivityMonitor | None = None,
) -> FastAPI:
    """Build the application; keyword overrides replace the configured components."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state = build_app_state(settings, blob_store=blob_store, image_host=image_host, monitor=monitor)
        try:
            await start_components(state)
            app.state.components = state
            yield
        finally:
            await state.engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AppException, app_exception_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(admin.router, prefix=settings.api_prefix)
    app.include_router(past_questions.router, prefix=settings.api_prefix)
    app.include_router(events.router, prefix=settings.api_prefix)

    return app
