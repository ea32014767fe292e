"""Sequential submission of a batch of pending uploads."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from event_photos.adapters.ingest_client import PhotoIngestClient
from event_photos.domain.errors import (
    AllUploadsFailedError,
    EncodingError,
    SubmissionError,
    ValidationError,
)
from event_photos.domain.uploads import PendingUpload, UploadStatus, apply_patch
from event_photos.services.normalizer import CANONICAL_CONTENT_TYPE, ImageNormalizer

logger = logging.getLogger(__name__)

# Coarse milestones, not measured transfer progress.
PROGRESS_STARTED = 10
PROGRESS_NORMALIZED = 30
PROGRESS_DONE = 100

CompletionCallback = Callable[[int], None]
UpdateCallback = Callable[[list[PendingUpload]], None]


@dataclass(frozen=True)
class BatchOutcome:
    """Result of a batch that had at least one successful upload."""

    entries: list[PendingUpload]
    success_count: int
    batch_size: int
    message: str | None = None

    @property
    def is_partial(self) -> bool:
        """Return true when some entries failed."""
        return self.success_count < self.batch_size


@dataclass
class SharedPhotoTally:
    """Counts photos shared since the process started."""

    count: int = 0

    def record(self, success_count: int) -> None:
        """Add the successes of a finished batch."""
        self.count += success_count


@dataclass
class UploadCoordinator:
    """Normalizes and submits entries one at a time, tracking their status."""

    normalizer: ImageNormalizer
    ingest_client: PhotoIngestClient

    async def submit_batch(
        self,
        entries: list[PendingUpload],
        on_complete: CompletionCallback,
        on_update: UpdateCallback | None = None,
    ) -> BatchOutcome:
        """Submit every entry in order and report the number of successes.

        Entries never run concurrently, so the remote endpoint sees at most
        one upload from a batch at a time. A failing entry is recorded and
        the loop moves on. ``on_complete`` fires once unless every entry
        failed, in which case AllUploadsFailedError is raised instead.
        """
        if not entries:
            raise ValidationError("Please select at least one image to upload.")

        state = list(entries)

        def update(entry: PendingUpload, **patch: object) -> None:
            nonlocal state
            state = apply_patch(state, entry.id, patch)
            if on_update is not None:
                on_update(state)

        for entry in entries:
            update(entry, status=UploadStatus.UPLOADING, progress=PROGRESS_STARTED)
            try:
                data = await asyncio.to_thread(self.normalizer.normalize, entry.source)
            except EncodingError as exc:
                logger.warning(
                    "Failed to normalize photo",
                    extra={"entry_id": str(entry.id), "file_name": entry.source.name},
                )
                update(entry, status=UploadStatus.FAILED, failure_reason=str(exc))
                continue

            update(entry, progress=PROGRESS_NORMALIZED)
            try:
                await self.ingest_client.submit_photo(
                    data, CANONICAL_CONTENT_TYPE, entry.comment
                )
            except SubmissionError as exc:
                logger.warning(
                    "Failed to submit photo",
                    extra={"entry_id": str(entry.id), "error": str(exc)},
                )
                update(
                    entry,
                    status=UploadStatus.FAILED,
                    failure_reason=str(exc) or "Upload failed",
                )
                continue
            update(entry, status=UploadStatus.SUCCEEDED, progress=PROGRESS_DONE)

        batch_size = len(state)
        success_count = sum(
            1 for entry in state if entry.status == UploadStatus.SUCCEEDED
        )
        if success_count == 0:
            logger.error("Every photo in the batch failed", extra={"size": batch_size})
            raise AllUploadsFailedError(
                "Failed to upload any photos. Please try again.", entries=state
            )

        message = None
        if success_count < batch_size:
            message = (
                f"Only {success_count} of {batch_size} photos were uploaded "
                "successfully."
            )
        logger.info(
            "Upload batch finished",
            extra={"success_count": success_count, "size": batch_size},
        )
        on_complete(success_count)
        return BatchOutcome(
            entries=state,
            success_count=success_count,
            batch_size=batch_size,
            message=message,
        )
