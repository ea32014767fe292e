"""Tests for the kiosk camera surface."""

import asyncio

import pytest

from event_photos.config import MIB
from event_photos.domain.errors import (
    AcquisitionError,
    AllUploadsFailedError,
    UploadInProgressError,
    ValidationError,
)
from event_photos.domain.uploads import UploadStatus
from event_photos.services.capture import CameraFacing, MediaCapture
from event_photos.services.capture_session import (
    CAMERA_UNAVAILABLE_MESSAGE,
    CaptureMode,
)
from tests.conftest import (
    FakeCameraProvider,
    FakeIngestClient,
    jpeg_source,
    make_capture_session,
    sized_source,
)


def test_open_acquires_the_environment_camera() -> None:
    provider = FakeCameraProvider()
    session = make_capture_session(provider)

    async def scenario() -> None:
        await session.open()
        assert session.is_open
        assert session.mode == CaptureMode.CAMERA
        assert session.camera_active
        assert [device.facing for device in provider.held] == [
            CameraFacing.ENVIRONMENT
        ]
        await session.close()

    asyncio.run(scenario())

    assert provider.held == []


def test_unavailable_camera_falls_back_to_upload() -> None:
    provider = FakeCameraProvider(available=False)
    session = make_capture_session(provider)

    asyncio.run(session.open())

    assert session.mode == CaptureMode.UPLOAD
    assert session.error == CAMERA_UNAVAILABLE_MESSAGE
    assert not session.camera_active
    assert provider.held == []


def test_capture_moves_to_preview_and_releases_camera() -> None:
    provider = FakeCameraProvider()
    session = make_capture_session(provider)

    async def scenario() -> None:
        await session.open()
        await session.capture()

    asyncio.run(scenario())

    assert session.mode == CaptureMode.PREVIEW
    assert session.pending is not None
    assert session.pending.source.normalized
    assert session.pending.source.data[:2] == b"\xff\xd8"
    assert session.pending.preview is not None
    assert not session.is_file_pick
    assert provider.held == []


def test_toggle_facing_swaps_the_held_device() -> None:
    provider = FakeCameraProvider()
    session = make_capture_session(provider)

    async def scenario() -> None:
        await session.open()
        await session.toggle_facing()
        assert session.facing == CameraFacing.USER
        assert len(provider.devices) == 2
        assert provider.devices[0].released
        assert [device.facing for device in provider.held] == [CameraFacing.USER]

    asyncio.run(scenario())


def test_failed_frame_read_keeps_the_camera() -> None:
    provider = FakeCameraProvider(frame=None)
    session = make_capture_session(provider)

    async def scenario() -> None:
        await session.open()
        with pytest.raises(AcquisitionError):
            await session.capture()
        assert session.mode == CaptureMode.CAMERA
        assert session.error is not None
        assert session.error.startswith("Could not take the photo")
        assert len(provider.held) == 1
        await session.close()

    asyncio.run(scenario())

    assert provider.held == []


def test_capture_without_camera_is_rejected() -> None:
    session = make_capture_session(FakeCameraProvider(available=False))

    async def scenario() -> None:
        await session.open()
        with pytest.raises(ValidationError, match="not active"):
            await session.capture()

    asyncio.run(scenario())


def test_upload_mode_releases_and_back_reacquires() -> None:
    provider = FakeCameraProvider()
    session = make_capture_session(provider)

    async def scenario() -> None:
        await session.open()
        await session.switch_to_upload()
        assert session.mode == CaptureMode.UPLOAD
        assert provider.held == []
        await session.back_to_camera()
        assert session.mode == CaptureMode.CAMERA
        assert len(provider.held) == 1

    asyncio.run(scenario())


def test_choose_file_validates_the_pick() -> None:
    provider = FakeCameraProvider()
    session = make_capture_session(provider)

    async def scenario() -> None:
        await session.open()
        await session.switch_to_upload()
        with pytest.raises(ValidationError, match="smaller than 10MB"):
            await session.choose_file(sized_source("huge.jpg", 11 * MIB))
        assert session.mode == CaptureMode.UPLOAD
        assert session.error is not None
        await session.choose_file(jpeg_source("picked.jpg"))

    asyncio.run(scenario())

    assert session.mode == CaptureMode.PREVIEW
    assert session.error is None
    assert session.is_file_pick
    assert session.pending is not None
    assert session.pending.source.name == "picked.jpg"


def test_retake_discards_the_preview() -> None:
    provider = FakeCameraProvider()
    session = make_capture_session(provider)

    async def scenario() -> None:
        await session.open()
        await session.capture()
        session.set_comment("Draft")
        await session.retake()
        assert session.pending is None
        assert session.mode == CaptureMode.CAMERA
        assert len(provider.held) == 1

    asyncio.run(scenario())


def test_submit_uploads_and_closes() -> None:
    provider = FakeCameraProvider()
    ingest = FakeIngestClient()
    session = make_capture_session(provider, ingest)
    counts: list[int] = []

    async def scenario() -> None:
        await session.open()
        await session.capture()
        session.set_comment("From the dance floor")
        outcome = await session.submit(counts.append)
        assert outcome.success_count == 1

    asyncio.run(scenario())

    assert counts == [1]
    assert ingest.submissions[0][1:] == ("image/jpeg", "From the dance floor")
    assert not session.is_open
    assert session.pending is None
    assert provider.held == []


def test_failed_submit_keeps_the_photo_for_retry() -> None:
    provider = FakeCameraProvider()
    ingest = FakeIngestClient(fail_on={0}, error_message="Storage is full")
    session = make_capture_session(provider, ingest)
    counts: list[int] = []

    async def scenario() -> None:
        await session.open()
        await session.capture()
        session.set_comment("Try again")
        first_id = session.pending.id
        with pytest.raises(AllUploadsFailedError):
            await session.submit(counts.append)
        assert session.error == "Storage is full"
        assert session.is_open
        assert session.mode == CaptureMode.PREVIEW
        assert session.pending.id != first_id
        assert session.pending.status == UploadStatus.PENDING
        assert session.pending.comment == "Try again"

        await session.submit(counts.append)

    asyncio.run(scenario())

    assert counts == [1]
    assert len(ingest.submissions) == 2
    assert not session.is_open


def test_submit_without_photo_is_rejected() -> None:
    session = make_capture_session()

    with pytest.raises(ValidationError, match="no photo"):
        asyncio.run(session.submit(lambda _: None))


def test_close_releases_camera_and_is_refused_while_uploading() -> None:
    provider = FakeCameraProvider()
    session = make_capture_session(provider)

    async def scenario() -> None:
        await session.open()
        session.is_uploading = True
        with pytest.raises(ValidationError, match="can't be cancelled"):
            await session.close()
        assert len(provider.held) == 1
        session.is_uploading = False
        await session.close()

    asyncio.run(scenario())

    assert provider.held == []
    assert not session.is_open


def test_acquire_releases_when_the_block_raises() -> None:
    provider = FakeCameraProvider()
    capture = MediaCapture(provider)

    async def scenario() -> None:
        async with capture.acquire(CameraFacing.USER):
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(scenario())

    assert provider.devices[0].released


def test_surface_is_locked_while_a_photo_uploads() -> None:
    provider = FakeCameraProvider()
    ingest = FakeIngestClient()
    session = make_capture_session(provider, ingest)
    counts: list[int] = []

    async def scenario() -> None:
        ingest.gate = asyncio.Event()
        await session.open()
        await session.capture()
        upload = asyncio.create_task(session.submit(counts.append))
        while not ingest.submissions:
            await asyncio.sleep(0)

        for change in (
            session.retake,
            session.open,
            session.toggle_facing,
            session.switch_to_upload,
            session.back_to_camera,
            session.close,
        ):
            with pytest.raises(UploadInProgressError):
                await change()
        with pytest.raises(UploadInProgressError):
            await session.choose_file(jpeg_source("late.jpg"))
        with pytest.raises(UploadInProgressError):
            session.set_comment("late")
        with pytest.raises(UploadInProgressError):
            await session.submit(counts.append)

        assert session.mode == CaptureMode.PREVIEW
        assert session.facing == CameraFacing.ENVIRONMENT
        assert provider.held == []
        assert len(provider.devices) == 1

        ingest.gate.set()
        await upload

    asyncio.run(scenario())

    assert counts == [1]
    assert len(ingest.submissions) == 1
    assert not session.is_open
    assert session.pending is None
    assert provider.held == []
