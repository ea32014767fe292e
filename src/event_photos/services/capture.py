"""Scoped access to the kiosk camera."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

import numpy as np

logger = logging.getLogger(__name__)


class CameraFacing(StrEnum):
    """Which camera to use."""

    USER = "user"
    ENVIRONMENT = "environment"

    def toggled(self) -> "CameraFacing":
        """Return the opposite facing."""
        if self is CameraFacing.USER:
            return CameraFacing.ENVIRONMENT
        return CameraFacing.USER


class CameraDevice(Protocol):
    """An opened camera handle."""

    def read_frame(self) -> np.ndarray:
        """Return the current frame or raise AcquisitionError."""

    def release(self) -> None:
        """Stop the camera and free the device."""


class CameraProvider(Protocol):
    """Opens camera devices."""

    def open(self, facing: CameraFacing) -> CameraDevice:
        """Open the device for the facing or raise AcquisitionError."""


@dataclass
class MediaCapture:
    """Acquires the camera for a scope and grabs still frames from it."""

    provider: CameraProvider

    @asynccontextmanager
    async def acquire(self, facing: CameraFacing) -> AsyncIterator[CameraDevice]:
        """Hold the camera for the duration of the block."""
        device = await asyncio.to_thread(self.provider.open, facing)
        logger.info("Camera acquired", extra={"facing": str(facing)})
        try:
            yield device
        finally:
            await asyncio.to_thread(device.release)
            logger.info("Camera released", extra={"facing": str(facing)})

    async def capture_still(self, device: CameraDevice) -> np.ndarray:
        """Read a single frame from an acquired device."""
        return await asyncio.to_thread(device.read_frame)
