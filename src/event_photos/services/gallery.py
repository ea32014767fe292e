"""Gallery browsing and two-step deletion."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from event_photos.domain.errors import GalleryError
from event_photos.domain.photos import PhotoRecord

logger = logging.getLogger(__name__)

NAVIGATION_KEYS = {"ArrowLeft", "ArrowRight", "Escape"}


class PhotoRepository(Protocol):
    """Persistence interface for stored photos."""

    def list_photos(self) -> list[dict[str, object]]:
        """Return photo rows, newest first."""

    def delete_photo(self, photo_id: str) -> None:
        """Delete a photo row."""


@dataclass(frozen=True)
class Idle:
    """No deletion is awaiting confirmation."""


@dataclass(frozen=True)
class Armed:
    """A deletion of ``photo_id`` awaits confirmation."""

    photo_id: str


DeleteConfirmation = Idle | Armed


class DeleteOutcome(StrEnum):
    """What a delete request did."""

    ARMED = "armed"
    DELETED = "deleted"


@dataclass
class GalleryViewModel:
    """Photo list with full-screen focus, navigation and deletion."""

    repository: PhotoRepository
    photos: list[PhotoRecord] = field(default_factory=list)
    focused_index: int | None = None
    confirmation: DeleteConfirmation = field(default_factory=Idle)

    @property
    def focused(self) -> PhotoRecord | None:
        """Return the photo shown full screen, if any."""
        if self.focused_index is None:
            return None
        return self.photos[self.focused_index]

    def refresh(self) -> list[PhotoRecord]:
        """Reload the photo list from the backend."""
        try:
            rows = self.repository.list_photos()
        except Exception as exc:
            logger.exception("Failed to fetch photos")
            raise GalleryError("Failed to load photos") from exc
        if not isinstance(rows, list):
            raise GalleryError("No data received or invalid format")
        self.photos = _valid_photos(rows)
        self.focused_index = None
        self.confirmation = Idle()
        return self.photos

    def open(self, index: int) -> PhotoRecord:
        """Focus the photo at ``index``."""
        if not 0 <= index < len(self.photos):
            raise IndexError(index)
        self.focused_index = index
        return self.photos[index]

    def close(self) -> None:
        """Leave the full-screen view."""
        self.focused_index = None

    def previous(self) -> None:
        """Move focus to the newer neighbour; no-op on the first photo."""
        if self.focused_index is not None and self.focused_index > 0:
            self.focused_index -= 1

    def next(self) -> None:
        """Move focus to the older neighbour; no-op on the last photo."""
        if (
            self.focused_index is not None
            and self.focused_index < len(self.photos) - 1
        ):
            self.focused_index += 1

    def handle_key(self, key: str) -> None:
        """Apply a keyboard shortcut while a photo is focused."""
        if self.focused_index is None:
            return
        if key == "ArrowLeft":
            self.previous()
        elif key == "ArrowRight":
            self.next()
        elif key == "Escape":
            self.close()

    def request_delete(self, photo_id: str) -> DeleteOutcome:
        """Arm the deletion of a photo, or carry it out when already armed."""
        if self.confirmation != Armed(photo_id):
            self.confirmation = Armed(photo_id)
            return DeleteOutcome.ARMED

        try:
            self.repository.delete_photo(photo_id)
        except Exception as exc:
            logger.exception("Failed to delete photo", extra={"photo_id": photo_id})
            detail = str(exc) or "Unknown error"
            raise GalleryError(f"Failed to delete photo: {detail}") from exc

        index = next(
            (i for i, photo in enumerate(self.photos) if photo.id == photo_id), None
        )
        if index is not None:
            del self.photos[index]
            if self.focused_index == index:
                self.focused_index = None
            elif self.focused_index is not None and self.focused_index > index:
                self.focused_index -= 1
        self.confirmation = Idle()
        logger.info("Deleted photo", extra={"photo_id": photo_id})
        return DeleteOutcome.DELETED

    def cancel_delete(self) -> None:
        """Drop a pending confirmation."""
        self.confirmation = Idle()


def format_created_at(value: str | None) -> str:
    """Format a creation timestamp for display."""
    if not value:
        return "Date unavailable"
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return "Invalid date"
    return moment.strftime("%B %d, %Y %H:%M")


def _valid_photos(rows: list[object]) -> list[PhotoRecord]:
    photos = []
    for row in rows:
        try:
            photos.append(PhotoRecord.model_validate(row))
        except PydanticValidationError:
            logger.warning("Skipping malformed photo row")
    return photos
