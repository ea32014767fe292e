"""Kiosk camera endpoints."""

import logging

from fastapi import APIRouter, File, HTTPException, Request, UploadFile, status

from event_photos.api.deps import get_container, http_error, read_upload, user_error
from event_photos.api.schemas import BatchOutcomeView, CaptureView, CommentUpdate
from event_photos.domain.errors import (
    AcquisitionError,
    AllUploadsFailedError,
    EncodingError,
    UploadInProgressError,
    ValidationError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/camera", tags=["camera"])


def _view(request: Request) -> CaptureView:
    return CaptureView.from_session(get_container(request).capture_session)


@router.get("")
async def camera_state(request: Request) -> CaptureView:
    """Return the camera surface state."""
    return _view(request)


@router.post("/open")
async def open_camera(request: Request) -> CaptureView:
    """Open the surface; falls back to upload mode without a camera."""
    try:
        await get_container(request).capture_session.open()
    except UploadInProgressError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    return _view(request)


@router.post("/facing")
async def toggle_facing(request: Request) -> CaptureView:
    """Switch between the front and back cameras."""
    try:
        await get_container(request).capture_session.toggle_facing()
    except UploadInProgressError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    return _view(request)


@router.post("/capture")
async def capture(request: Request) -> CaptureView:
    """Take a photo and show its preview."""
    container = get_container(request)
    try:
        await container.capture_session.capture()
    except ValidationError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    except (AcquisitionError, EncodingError) as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=user_error(container, exc, "Could not take the photo."),
        ) from exc
    return _view(request)


@router.post("/upload-mode")
async def upload_mode(request: Request) -> CaptureView:
    """Switch from the camera to picking a file."""
    try:
        await get_container(request).capture_session.switch_to_upload()
    except UploadInProgressError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    return _view(request)


@router.post("/camera-mode")
async def camera_mode(request: Request) -> CaptureView:
    """Go back from picking a file to the camera."""
    try:
        await get_container(request).capture_session.back_to_camera()
    except UploadInProgressError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    return _view(request)


@router.post("/file")
async def choose_file(request: Request, file: UploadFile = File(...)) -> CaptureView:
    """Use a picked file instead of a camera still."""
    session = get_container(request).capture_session
    try:
        await session.choose_file(await read_upload(file))
    except UploadInProgressError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    except ValidationError as exc:
        raise http_error(status.HTTP_400_BAD_REQUEST, exc) from exc
    return _view(request)


@router.patch("/comment")
async def set_comment(body: CommentUpdate, request: Request) -> CaptureView:
    """Set the comment of the previewed photo."""
    try:
        get_container(request).capture_session.set_comment(body.comment)
    except ValidationError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    return _view(request)


@router.post("/retake")
async def retake(request: Request) -> CaptureView:
    """Discard the preview and return to the camera."""
    try:
        await get_container(request).capture_session.retake()
    except UploadInProgressError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    return _view(request)


@router.post("/submit")
async def submit(request: Request) -> BatchOutcomeView:
    """Upload the previewed photo."""
    container = get_container(request)
    try:
        outcome = await container.capture_session.submit(container.tally.record)
    except AllUploadsFailedError as exc:
        logger.exception("Camera upload failed")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=user_error(
                container,
                exc,
                container.capture_session.error or "Failed to upload photo.",
            ),
        ) from exc
    except UploadInProgressError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    except ValidationError as exc:
        raise http_error(status.HTTP_400_BAD_REQUEST, exc) from exc
    return BatchOutcomeView.from_outcome(outcome)


@router.post("/close")
async def close_camera(request: Request) -> CaptureView:
    """Close the surface and release the camera."""
    try:
        await get_container(request).capture_session.close()
    except ValidationError as exc:
        raise http_error(status.HTTP_409_CONFLICT, exc) from exc
    return _view(request)
