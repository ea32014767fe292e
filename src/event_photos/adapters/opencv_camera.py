"""OpenCV-backed camera devices."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import cv2
import numpy as np

from event_photos.domain.errors import AcquisitionError
from event_photos.services.capture import CameraDevice, CameraFacing, CameraProvider

logger = logging.getLogger(__name__)


@dataclass
class OpenCVCameraDevice(CameraDevice):
    """Camera handle wrapping ``cv2.VideoCapture``."""

    capture: cv2.VideoCapture

    def read_frame(self) -> np.ndarray:
        """Read the latest frame in BGR order."""
        ok, frame = self.capture.read()
        if not ok or frame is None:
            raise AcquisitionError("Failed to read a frame from the camera")
        return frame

    def release(self) -> None:
        """Release the capture handle."""
        self.capture.release()


@dataclass
class OpenCVCameraProvider(CameraProvider):
    """Opens local cameras by device index."""

    device_indices: dict[CameraFacing, int] = field(
        default_factory=lambda: {CameraFacing.ENVIRONMENT: 0, CameraFacing.USER: 1}
    )
    frame_width: int = 1280
    frame_height: int = 720
    capture_factory: Callable[[int], cv2.VideoCapture] = cv2.VideoCapture

    def open(self, facing: CameraFacing) -> OpenCVCameraDevice:
        """Open the camera for the facing at the ideal resolution."""
        index = self.device_indices.get(facing, 0)
        capture = self.capture_factory(index)
        if not capture.isOpened():
            capture.release()
            logger.warning("Camera could not be opened", extra={"index": index})
            raise AcquisitionError(f"Camera {index} is not available")
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.frame_width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.frame_height)
        return OpenCVCameraDevice(capture)
