"""Multi-file upload endpoints."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, File, HTTPException, Request, UploadFile, status

from event_photos.api.deps import get_container, http_error, read_upload, user_error
from event_photos.api.schemas import (
    BatchOutcomeView,
    CommentUpdate,
    EntryView,
    UploadSessionView,
)
from event_photos.domain.errors import (
    AllUploadsFailedError,
    UploadInProgressError,
    ValidationError,
)

if TYPE_CHECKING:
    from event_photos.services.upload_session import UploadSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])


async def _session(request: Request, session_id: UUID) -> UploadSession:
    session = await get_container(request).upload_sessions.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Upload session not found"
        )
    return session


@router.post("", status_code=status.HTTP_201_CREATED)
async def open_session(request: Request) -> UploadSessionView:
    """Open an empty upload session."""
    session = get_container(request).new_upload_session()
    return UploadSessionView.from_session(session)


@router.get("/{session_id}")
async def get_session(session_id: UUID, request: Request) -> UploadSessionView:
    """Return the current state of an upload session."""
    return UploadSessionView.from_session(await _session(request, session_id))


@router.post("/{session_id}/files")
async def add_files(
    session_id: UUID, request: Request, files: list[UploadFile] = File(...)
) -> UploadSessionView:
    """Add picked files to the session."""
    session = await _session(request, session_id)
    sources = [await read_upload(file) for file in files]
    try:
        result = await session.add_files(sources)
    except ValidationError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    await session.previews_ready()
    if not result.admitted and result.error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)
    return UploadSessionView.from_session(session)


@router.patch("/{session_id}/files/{entry_id}")
async def update_comment(
    session_id: UUID, entry_id: UUID, body: CommentUpdate, request: Request
) -> EntryView:
    """Change the comment of one file."""
    session = await _session(request, session_id)
    try:
        entry = session.update_comment(entry_id, body.comment)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="File not found"
        ) from exc
    except ValidationError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    return EntryView.from_entry(entry)


@router.delete("/{session_id}/files/{entry_id}")
async def remove_file(
    session_id: UUID, entry_id: UUID, request: Request
) -> UploadSessionView:
    """Remove one file from the session."""
    session = await _session(request, session_id)
    try:
        session.remove_file(entry_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="File not found"
        ) from exc
    except ValidationError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    return UploadSessionView.from_session(session)


@router.post("/{session_id}/submit")
async def submit(session_id: UUID, request: Request) -> BatchOutcomeView:
    """Upload every file of the session, one after the other."""
    container = get_container(request)
    session = await _session(request, session_id)
    try:
        outcome = await session.submit(container.tally.record)
    except AllUploadsFailedError as exc:
        logger.exception("Upload batch failed", extra={"session_id": str(session_id)})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=user_error(container, exc, str(exc)),
        ) from exc
    except UploadInProgressError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    except ValidationError as exc:
        raise http_error(status.HTTP_400_BAD_REQUEST, exc) from exc
    await container.upload_sessions.discard(session_id)
    return BatchOutcomeView.from_outcome(outcome)


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_session(session_id: UUID, request: Request) -> None:
    """Close the session and discard its files."""
    container = get_container(request)
    await _session(request, session_id)
    try:
        await container.upload_sessions.discard(session_id)
    except ValidationError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
