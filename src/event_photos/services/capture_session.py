"""Single-photo camera surface state."""

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from enum import StrEnum

from event_photos.domain.errors import (
    AcquisitionError,
    AllUploadsFailedError,
    EncodingError,
    UploadInProgressError,
    ValidationError,
)
from event_photos.domain.uploads import PendingUpload, SourceImage, apply_patch
from event_photos.services.capture import CameraDevice, CameraFacing, MediaCapture
from event_photos.services.intake import FileIntake, PreviewDecoder
from event_photos.services.normalizer import CANONICAL_CONTENT_TYPE, ImageNormalizer
from event_photos.services.uploads import (
    BatchOutcome,
    CompletionCallback,
    UploadCoordinator,
)

logger = logging.getLogger(__name__)

CAMERA_UNAVAILABLE_MESSAGE = (
    "Could not access camera. Please check permissions or try uploading a "
    "photo instead."
)
UPLOAD_IN_PROGRESS_MESSAGE = "An upload is in progress and can't be cancelled."


class CaptureMode(StrEnum):
    """Screens of the camera surface."""

    CAMERA = "camera"
    UPLOAD = "upload"
    PREVIEW = "preview"


@dataclass
class CaptureSession:
    """Takes or picks one photo, previews it and submits it.

    The camera is held only while the session is in camera mode. Leaving
    camera mode for any reason, including a failure, releases it.
    """

    media_capture: MediaCapture
    intake: FileIntake
    normalizer: ImageNormalizer
    preview_decoder: PreviewDecoder
    coordinator: UploadCoordinator
    facing: CameraFacing = CameraFacing.ENVIRONMENT
    mode: CaptureMode = CaptureMode.CAMERA
    pending: PendingUpload | None = None
    error: str | None = None
    is_uploading: bool = False
    is_open: bool = False
    _device: CameraDevice | None = field(default=None, repr=False)
    _camera_scope: AsyncExitStack | None = field(default=None, repr=False)

    @property
    def camera_active(self) -> bool:
        """Return true while the camera device is held."""
        return self._device is not None

    @property
    def is_file_pick(self) -> bool:
        """Return true when the pending photo came from a picked file."""
        return self.pending is not None and not self.pending.source.normalized

    async def open(self) -> None:
        """Show the surface, starting in camera mode."""
        self._ensure_idle()
        self.is_open = True
        self._reset_pending()
        await self._enter_camera()

    async def toggle_facing(self) -> None:
        """Switch between the user and environment cameras."""
        self._ensure_idle()
        self.facing = self.facing.toggled()
        if self.mode == CaptureMode.CAMERA and self.is_open:
            await self._enter_camera()

    async def capture(self) -> PendingUpload:
        """Take a still from the camera and move to the preview screen."""
        self._ensure_idle()
        if self.mode != CaptureMode.CAMERA or self._device is None:
            raise ValidationError("The camera is not active.")
        try:
            frame = await self.media_capture.capture_still(self._device)
            data = await asyncio.to_thread(self.normalizer.normalize_frame, frame)
        except (AcquisitionError, EncodingError) as exc:
            logger.warning("Failed to capture photo", exc_info=True)
            self.error = f"Could not take the photo: {exc}"
            raise
        source = SourceImage(
            name="capture.jpg",
            data=data,
            media_type=CANONICAL_CONTENT_TYPE,
            normalized=True,
        )
        await self._show_preview(PendingUpload.create(source))
        return self.pending

    async def switch_to_upload(self) -> None:
        """Leave the camera for the file picker."""
        self._ensure_idle()
        await self._release_camera()
        self.mode = CaptureMode.UPLOAD

    async def back_to_camera(self) -> None:
        """Return from the file picker to the camera."""
        self._ensure_idle()
        self.error = None
        await self._enter_camera()

    async def choose_file(self, source: SourceImage) -> PendingUpload:
        """Validate a picked file and move to the preview screen."""
        self._ensure_idle()
        try:
            self.intake.check_single(source)
        except ValidationError as exc:
            self.error = str(exc)
            raise
        await self._release_camera()
        await self._show_preview(PendingUpload.create(source))
        return self.pending

    def set_comment(self, comment: str) -> PendingUpload:
        """Set the comment of the previewed photo."""
        self._ensure_idle()
        if self.pending is None:
            raise ValidationError("There is no photo to comment on.")
        (self.pending,) = apply_patch(
            [self.pending], self.pending.id, {"comment": comment}
        )
        return self.pending

    async def retake(self) -> None:
        """Discard the previewed photo and go back to the camera."""
        self._ensure_idle()
        self._reset_pending()
        await self._enter_camera()

    async def submit(self, on_complete: CompletionCallback) -> BatchOutcome:
        """Upload the previewed photo; the surface closes on success."""
        self._ensure_idle()
        if self.pending is None:
            raise ValidationError("There is no photo to upload.")
        if self.pending.source.size == 0:
            self.error = "Invalid image file. Please try again."
            raise ValidationError(self.error)
        self.is_uploading = True
        self.error = None
        pending = self.pending
        try:
            outcome = await self.coordinator.submit_batch(
                [pending], on_complete, on_update=self._track
            )
        except AllUploadsFailedError as exc:
            failed = exc.entries[0] if exc.entries else None
            reason = failed.failure_reason if failed else None
            self.error = reason or str(exc)
            self.pending = PendingUpload.create(
                pending.source, pending.comment, preview=pending.preview
            )
            raise
        finally:
            self.is_uploading = False
        await self._close()
        return outcome

    async def close(self) -> None:
        """Hide the surface, releasing the camera and dropping pending state."""
        self._ensure_idle()
        await self._close()

    async def _close(self) -> None:
        await self._release_camera()
        self._reset_pending()
        self.mode = CaptureMode.CAMERA
        self.is_open = False

    def _ensure_idle(self) -> None:
        if self.is_uploading:
            raise UploadInProgressError(UPLOAD_IN_PROGRESS_MESSAGE)

    async def _show_preview(self, entry: PendingUpload) -> None:
        try:
            preview = await self.preview_decoder.decode(entry.source)
        except Exception:
            logger.warning("Failed to decode preview", exc_info=True)
        else:
            entry = apply_patch([entry], entry.id, {"preview": preview})[0]
        await self._release_camera()
        self.pending = entry
        self.error = None
        self.mode = CaptureMode.PREVIEW

    async def _enter_camera(self) -> None:
        await self._release_camera()
        self.mode = CaptureMode.CAMERA
        scope = AsyncExitStack()
        try:
            self._device = await scope.enter_async_context(
                self.media_capture.acquire(self.facing)
            )
        except AcquisitionError:
            await scope.aclose()
            logger.warning("Camera unavailable, falling back to file upload")
            self.error = CAMERA_UNAVAILABLE_MESSAGE
            self.mode = CaptureMode.UPLOAD
            return
        self._camera_scope = scope

    async def _release_camera(self) -> None:
        scope, self._camera_scope = self._camera_scope, None
        self._device = None
        if scope is not None:
            await scope.aclose()

    def _reset_pending(self) -> None:
        self.pending = None
        self.error = None

    def _track(self, entries: list[PendingUpload]) -> None:
        self.pending = entries[0]
