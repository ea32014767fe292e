"""Re-encoding of photos to the canonical JPEG format."""

import io
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from event_photos.domain.errors import EncodingError
from event_photos.domain.uploads import SourceImage

CANONICAL_CONTENT_TYPE = "image/jpeg"


@dataclass
class ImageNormalizer:
    """Produces JPEG bytes at a fixed quality for every submitted photo.

    Picked files are decoded at their natural size and re-encoded even when
    they already are JPEG, so the backend only ever receives one format.
    Camera frames arrive as OpenCV arrays and are encoded directly.
    """

    quality: float = 0.9

    def normalize(self, source: SourceImage) -> bytes:
        """Return canonical JPEG bytes for a picked or captured image."""
        if source.normalized:
            return source.data
        try:
            with Image.open(io.BytesIO(source.data)) as image:
                raster = ImageOps.exif_transpose(image).convert("RGB")
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise EncodingError(f"Could not read {source.name}: {exc}") from exc
        except Image.DecompressionBombError as exc:
            raise EncodingError(f"{source.name} is too large to decode") from exc
        return self._encode(raster)

    def normalize_frame(self, frame: np.ndarray | None) -> bytes:
        """Return canonical JPEG bytes for a camera frame in BGR order."""
        if frame is None or frame.size == 0:
            raise EncodingError("The camera returned an empty frame")
        if frame.dtype != np.uint8:
            raise EncodingError(f"Unsupported frame type {frame.dtype}")
        if frame.ndim == 2:
            raster = Image.fromarray(frame).convert("RGB")
        elif frame.ndim == 3 and frame.shape[2] in {3, 4}:
            rgb = np.ascontiguousarray(frame[:, :, 2::-1])
            raster = Image.fromarray(rgb)
        else:
            raise EncodingError(f"Unsupported frame shape {frame.shape}")
        return self._encode(raster)

    @property
    def pillow_quality(self) -> int:
        """Quality on Pillow's 1-95 JPEG scale."""
        return max(1, min(95, round(self.quality * 100)))

    def _encode(self, raster: Image.Image) -> bytes:
        buffer = io.BytesIO()
        try:
            raster.save(buffer, format="JPEG", quality=self.pillow_quality)
        except OSError as exc:
            raise EncodingError(f"JPEG encoding failed: {exc}") from exc
        data = buffer.getvalue()
        if not data:
            raise EncodingError("JPEG encoding produced no data")
        return data
