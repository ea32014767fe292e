"""Domain models for photos waiting to be uploaded."""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from uuid import UUID, uuid4

from event_photos.domain.errors import ValidationError


class UploadStatus(StrEnum):
    """Lifecycle of a single pending upload."""

    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS: dict[UploadStatus, set[UploadStatus]] = {
    UploadStatus.PENDING: {UploadStatus.PENDING, UploadStatus.UPLOADING},
    UploadStatus.UPLOADING: {
        UploadStatus.UPLOADING,
        UploadStatus.SUCCEEDED,
        UploadStatus.FAILED,
    },
    UploadStatus.SUCCEEDED: {UploadStatus.SUCCEEDED},
    UploadStatus.FAILED: {UploadStatus.FAILED},
}

_PATCHABLE_FIELDS = {"comment", "status", "progress", "failure_reason", "preview"}


@dataclass(frozen=True)
class SourceImage:
    """Original image bytes with their declared media type."""

    name: str
    data: bytes
    media_type: str
    normalized: bool = False

    @property
    def size(self) -> int:
        """Return the size of the image in bytes."""
        return len(self.data)

    @property
    def is_image(self) -> bool:
        """Return true when the declared media type is an image type."""
        return self.media_type.lower().startswith("image/")


@dataclass(frozen=True)
class PendingUpload:
    """One photo awaiting or undergoing submission."""

    id: UUID
    source: SourceImage
    preview: str | None = None
    comment: str = ""
    status: UploadStatus = UploadStatus.PENDING
    progress: int = 0
    failure_reason: str | None = None

    @classmethod
    def create(
        cls, source: SourceImage, comment: str = "", preview: str | None = None
    ) -> "PendingUpload":
        """Create a fresh pending entry with a new id."""
        return cls(id=uuid4(), source=source, comment=comment, preview=preview)


def apply_patch(
    entries: list[PendingUpload], entry_id: UUID, patch: Mapping[str, object]
) -> list[PendingUpload]:
    """Return a new entry list with one entry updated.

    Raises KeyError for an unknown id, ValidationError for a comment change
    after submission started and ValueError for any other illegal change.
    """
    unknown = set(patch) - _PATCHABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported fields: {', '.join(sorted(unknown))}")
    for index, entry in enumerate(entries):
        if entry.id == entry_id:
            updated = _patched(entry, patch)
            return [*entries[:index], updated, *entries[index + 1 :]]
    raise KeyError(entry_id)


def find_entry(entries: list[PendingUpload], entry_id: UUID) -> PendingUpload | None:
    """Return the entry with the given id, if present."""
    return next((entry for entry in entries if entry.id == entry_id), None)


def _patched(entry: PendingUpload, patch: Mapping[str, object]) -> PendingUpload:
    if "comment" in patch and entry.status != UploadStatus.PENDING:
        raise ValidationError("Comments can't be changed once an upload has started.")

    status = UploadStatus(patch.get("status", entry.status))
    if status not in _TRANSITIONS[entry.status]:
        raise ValueError(f"Illegal transition {entry.status} -> {status}")

    progress = int(patch.get("progress", entry.progress))
    if progress < entry.progress:
        raise ValueError("Upload progress can't go backwards")

    failure_reason = patch.get("failure_reason", entry.failure_reason)
    if status != UploadStatus.FAILED:
        failure_reason = None

    return replace(
        entry,
        comment=str(patch.get("comment", entry.comment)),
        preview=patch.get("preview", entry.preview),
        status=status,
        progress=progress,
        failure_reason=failure_reason,
    )
