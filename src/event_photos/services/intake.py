"""Validation of guest-selected files before they join a batch."""

import asyncio
import base64
import io
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from PIL import Image, ImageOps

from event_photos.config import MIB, format_megabytes
from event_photos.domain.errors import ValidationError
from event_photos.domain.uploads import PendingUpload, SourceImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntakeLimits:
    """Size and count caps applied to one upload batch."""

    max_file_size_bytes: int = 10 * MIB
    max_aggregate_bytes: int = 30 * MIB
    max_file_count: int = 3


@dataclass(frozen=True)
class IntakeResult:
    """Outcome of one intake call."""

    entries: list[PendingUpload]
    admitted: list[PendingUpload]
    error: str | None = None


@dataclass
class FileIntake:
    """Admits image files into a batch while respecting the limits."""

    limits: IntakeLimits

    def admit(
        self, candidates: Iterable[SourceImage], batch: list[PendingUpload]
    ) -> IntakeResult:
        """Admit the valid subset of candidates and describe the rejects."""
        files = list(candidates)
        if len(batch) + len(files) > self.limits.max_file_count:
            return IntakeResult(
                entries=list(batch),
                admitted=[],
                error=(
                    "Too many files: you can only upload up to "
                    f"{self.limits.max_file_count} files at once."
                ),
            )

        total_size = sum(entry.source.size for entry in batch)
        admitted: list[PendingUpload] = []
        errors: list[str] = []
        for source in files:
            reason = self._rejection_reason(source, total_size)
            if reason:
                errors.append(reason)
                continue
            total_size += source.size
            admitted.append(PendingUpload.create(source))

        if errors:
            logger.info(
                "Rejected files at intake",
                extra={"rejected": len(errors), "admitted": len(admitted)},
            )
        return IntakeResult(
            entries=[*batch, *admitted],
            admitted=admitted,
            error=" ".join(errors) if errors else None,
        )

    def check_single(self, source: SourceImage) -> None:
        """Validate the one file picked on the camera screen."""
        if not source.is_image:
            raise ValidationError("Please select an image file (JPEG, PNG, etc.)")
        if source.size > self.limits.max_file_size_bytes:
            raise ValidationError(
                "Image is too large. Please select an image smaller than "
                f"{format_megabytes(self.limits.max_file_size_bytes)}."
            )
        if source.size == 0:
            raise ValidationError("Invalid image file. Please try again.")

    def _rejection_reason(self, source: SourceImage, total_size: int) -> str | None:
        if not source.is_image:
            return f"{source.name} is not an image file."
        if source.size > self.limits.max_file_size_bytes:
            limit = format_megabytes(self.limits.max_file_size_bytes)
            return f"{source.name} is too large: it exceeds the {limit} limit."
        if total_size + source.size > self.limits.max_aggregate_bytes:
            limit = format_megabytes(self.limits.max_aggregate_bytes)
            return f"Adding {source.name} would exceed the {limit} total limit."
        return None


@dataclass
class PreviewDecoder:
    """Renders small JPEG data URLs for showing pending photos."""

    max_dimension: int = 512

    async def decode(self, source: SourceImage) -> str:
        """Decode the image off the event loop and return a data URL."""
        return await asyncio.to_thread(self._render, source.data)

    def _render(self, data: bytes) -> str:
        with Image.open(io.BytesIO(data)) as image:
            preview = ImageOps.exif_transpose(image).convert("RGB")
        preview.thumbnail((self.max_dimension, self.max_dimension))
        buffer = io.BytesIO()
        preview.save(buffer, format="JPEG", quality=80)
        encoded = base64.b64encode(buffer.getvalue()).decode("utf-8")
        return f"data:image/jpeg;base64,{encoded}"
