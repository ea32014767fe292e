"""Pydantic models for API payloads."""

from uuid import UUID

from pydantic import BaseModel

from event_photos.domain.photos import PhotoRecord
from event_photos.domain.uploads import PendingUpload, UploadStatus
from event_photos.services.capture_session import CaptureSession
from event_photos.services.gallery import Armed, GalleryViewModel, format_created_at
from event_photos.services.upload_session import UploadSession
from event_photos.services.uploads import BatchOutcome


class CommentUpdate(BaseModel):
    """Request body for changing a comment."""

    comment: str


class AdminLogin(BaseModel):
    """Request body for the admin gate."""

    password: str


class EntryView(BaseModel):
    """A pending upload as shown to guests."""

    id: UUID
    file_name: str
    size_bytes: int
    preview: str | None
    comment: str
    status: UploadStatus
    progress: int
    failure_reason: str | None

    @classmethod
    def from_entry(cls, entry: PendingUpload) -> "EntryView":
        """Build a view from a pending upload."""
        return cls(
            id=entry.id,
            file_name=entry.source.name,
            size_bytes=entry.source.size,
            preview=entry.preview,
            comment=entry.comment,
            status=entry.status,
            progress=entry.progress,
            failure_reason=entry.failure_reason,
        )


class UploadSessionView(BaseModel):
    """State of a multi-file upload session."""

    id: UUID
    entries: list[EntryView]
    error: str | None
    is_uploading: bool
    closed: bool

    @classmethod
    def from_session(cls, session: UploadSession) -> "UploadSessionView":
        """Build a view from an upload session."""
        return cls(
            id=session.id,
            entries=[EntryView.from_entry(entry) for entry in session.entries],
            error=session.error,
            is_uploading=session.is_uploading,
            closed=session.closed,
        )


class BatchOutcomeView(BaseModel):
    """Result of a submitted batch."""

    success_count: int
    batch_size: int
    message: str | None
    entries: list[EntryView]

    @classmethod
    def from_outcome(cls, outcome: BatchOutcome) -> "BatchOutcomeView":
        """Build a view from a batch outcome."""
        return cls(
            success_count=outcome.success_count,
            batch_size=outcome.batch_size,
            message=outcome.message,
            entries=[EntryView.from_entry(entry) for entry in outcome.entries],
        )


class CaptureView(BaseModel):
    """State of the kiosk camera surface."""

    is_open: bool
    mode: str
    facing: str
    camera_active: bool
    pending: EntryView | None
    error: str | None
    is_uploading: bool

    @classmethod
    def from_session(cls, session: CaptureSession) -> "CaptureView":
        """Build a view from the capture session."""
        return cls(
            is_open=session.is_open,
            mode=str(session.mode),
            facing=str(session.facing),
            camera_active=session.camera_active,
            pending=EntryView.from_entry(session.pending) if session.pending else None,
            error=session.error,
            is_uploading=session.is_uploading,
        )


class PhotoView(BaseModel):
    """A stored photo."""

    id: str
    image_url: str
    comment: str | None
    created_at: str | None
    display_date: str

    @classmethod
    def from_record(cls, record: PhotoRecord) -> "PhotoView":
        """Build a view from a photo record."""
        return cls(
            id=record.id,
            image_url=record.image_url,
            comment=record.comment,
            created_at=record.created_at,
            display_date=format_created_at(record.created_at),
        )


class GalleryView(BaseModel):
    """State of a gallery view model."""

    photos: list[PhotoView]
    focused_index: int | None
    armed_photo_id: str | None

    @classmethod
    def from_gallery(cls, gallery: GalleryViewModel) -> "GalleryView":
        """Build a view from a gallery view model."""
        confirmation = gallery.confirmation
        return cls(
            photos=[PhotoView.from_record(photo) for photo in gallery.photos],
            focused_index=gallery.focused_index,
            armed_photo_id=(
                confirmation.photo_id if isinstance(confirmation, Armed) else None
            ),
        )
