"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from event_photos.api.admin import router as admin_router
from event_photos.api.camera import router as camera_router
from event_photos.api.deps import get_container, user_error
from event_photos.api.schemas import PhotoView
from event_photos.api.uploads import router as uploads_router
from event_photos.app_logging import configure_logging
from event_photos.containers import AppContainer
from event_photos.domain.errors import GalleryError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        try:
            await app.state.container.close_resources()
        except Exception:
            logger.exception("Failed to release resources on shutdown")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(uploads_router)
    app.include_router(camera_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/photos")
    async def list_photos(request: Request) -> dict[str, list[PhotoView]]:
        """Return the gallery, newest photos first."""
        state_container = get_container(request)
        gallery = state_container.public_gallery()
        try:
            photos = gallery.refresh()
        except GalleryError as exc:
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail=user_error(state_container, exc, str(exc)),
            ) from exc
        return {"photos": [PhotoView.from_record(photo) for photo in photos]}

    @app.get("/stats")
    async def stats(request: Request) -> dict[str, int]:
        """Return how many photos were shared through this service."""
        return {"photos_shared": get_container(request).tally.count}

    return app
