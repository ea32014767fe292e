"""Helpers shared by the API routers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, Request, UploadFile

from event_photos.domain.uploads import SourceImage

if TYPE_CHECKING:
    from event_photos.containers import AppContainer


def get_container(request: Request) -> AppContainer:
    """Return the dependency container attached to the app."""
    return request.app.state.container


async def read_upload(file: UploadFile) -> SourceImage:
    """Read an uploaded form file into a source image."""
    return SourceImage(
        name=file.filename or "photo",
        data=await file.read(),
        media_type=file.content_type or "application/octet-stream",
    )


def user_error(container: AppContainer, exc: Exception, fallback: str) -> str:
    """Return a user-facing error message with local debug info."""
    if container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            return f"{fallback} (debug: {detail})"
    return fallback


def http_error(status_code: int, exc: Exception) -> HTTPException:
    """Wrap a domain error's message in an HTTP error."""
    return HTTPException(status_code=status_code, detail=str(exc))
