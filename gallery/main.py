"""Local Gallery - FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gallery.config import Settings, settings
from gallery.errors import (
    AlbumNotFoundError,
    DuplicateIdError,
    FileTooLargeError,
    GalleryError,
    StorageQuotaError,
    UnsupportedTypeError,
    ValidationError,
)
from gallery.services.library import Library
from gallery.utils.logging import setup_logging

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
VERSION = "0.1.0"

# Error type -> HTTP status; anything else is a 500
ERROR_STATUS = {
    ValidationError: 400,
    AlbumNotFoundError: 404,
    DuplicateIdError: 409,
    FileTooLargeError: 413,
    UnsupportedTypeError: 415,
    StorageQuotaError: 507,
}


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the stores on startup, close them on shutdown."""
        setup_logging(app_settings.log_level)
        app.state.library = await Library.open(app_settings)
        yield
        await app.state.library.close()

    app = FastAPI(
        title=app_settings.app_name,
        description="Local photo and video albums",
        version=VERSION,
        lifespan=lifespan,
    )

    # CORS - the UI may be served from a file:// or another local port
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GalleryError)
    async def gallery_error_handler(request: Request, exc: GalleryError):
        status_code = ERROR_STATUS.get(type(exc), 500)
        if status_code == 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    # --- Register API routers ---
    from gallery.api.albums import router as albums_router
    from gallery.api.media import router as media_router
    from gallery.api.search import router as search_router
    from gallery.api.system import router as system_router

    app.include_router(albums_router, prefix=API_PREFIX)
    app.include_router(media_router, prefix=API_PREFIX)
    app.include_router(search_router, prefix=API_PREFIX)
    app.include_router(system_router, prefix=API_PREFIX)

    @app.get("/")
    def root():
        """Health check / server info."""
        return {
            "name": app_settings.app_name,
            "version": VERSION,
            "status": "running",
        }

    return app


app = create_app()
