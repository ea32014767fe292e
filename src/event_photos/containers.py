"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from event_photos.adapters.ingest_client import HttpxPhotoIngestClient
from event_photos.adapters.opencv_camera import OpenCVCameraProvider
from event_photos.adapters.supabase_photo_repository import SupabasePhotoRepository
from event_photos.config import Settings
from event_photos.services.admin import AdminGate
from event_photos.services.capture import CameraFacing, CameraProvider, MediaCapture
from event_photos.services.capture_session import CaptureSession
from event_photos.services.gallery import GalleryViewModel, PhotoRepository
from event_photos.services.intake import FileIntake, IntakeLimits, PreviewDecoder
from event_photos.services.normalizer import ImageNormalizer
from event_photos.services.upload_session import UploadSession, UploadSessionStore
from event_photos.services.uploads import SharedPhotoTally, UploadCoordinator


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    photo_repository: PhotoRepository
    intake: FileIntake
    normalizer: ImageNormalizer
    preview_decoder: PreviewDecoder
    coordinator: UploadCoordinator
    upload_sessions: UploadSessionStore
    capture_session: CaptureSession
    admin_gallery: GalleryViewModel
    admin_gate: AdminGate
    tally: SharedPhotoTally
    close_resources: Callable[[], Awaitable[None]]

    def new_upload_session(self) -> UploadSession:
        """Create and store a fresh multi-file upload session."""
        session = UploadSession(
            intake=self.intake,
            coordinator=self.coordinator,
            preview_decoder=self.preview_decoder,
        )
        return self.upload_sessions.add(session)

    def public_gallery(self) -> GalleryViewModel:
        """Return a read-only gallery view over the photo repository."""
        return GalleryViewModel(self.photo_repository)


def build_container(
    settings: Settings | None = None,
    camera_provider: CameraProvider | None = None,
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    photo_repository = SupabasePhotoRepository(
        supabase_client, table=resolved_settings.photos_table
    )
    ingest_client = HttpxPhotoIngestClient.create(
        function_url=resolved_settings.upload_function_url,
        api_key=resolved_settings.supabase_anon_key,
        timeout=resolved_settings.submission_timeout_seconds,
    )
    intake = FileIntake(
        IntakeLimits(
            max_file_size_bytes=resolved_settings.max_file_size_bytes,
            max_aggregate_bytes=resolved_settings.max_aggregate_bytes,
            max_file_count=resolved_settings.max_file_count,
        )
    )
    normalizer = ImageNormalizer(quality=resolved_settings.jpeg_quality)
    preview_decoder = PreviewDecoder(
        max_dimension=resolved_settings.preview_max_dimension
    )
    coordinator = UploadCoordinator(normalizer=normalizer, ingest_client=ingest_client)
    media_capture = MediaCapture(
        camera_provider
        or OpenCVCameraProvider(
            device_indices={
                CameraFacing.USER: resolved_settings.camera_user_index,
                CameraFacing.ENVIRONMENT: resolved_settings.camera_environment_index,
            },
            frame_width=resolved_settings.camera_frame_width,
            frame_height=resolved_settings.camera_frame_height,
        )
    )
    capture_session = CaptureSession(
        media_capture=media_capture,
        intake=intake,
        normalizer=normalizer,
        preview_decoder=preview_decoder,
        coordinator=coordinator,
    )
    upload_sessions = UploadSessionStore(
        ttl_seconds=resolved_settings.upload_session_ttl_seconds
    )

    async def close_resources() -> None:
        if capture_session.is_open and not capture_session.is_uploading:
            await capture_session.close()
        await ingest_client.close()

    return AppContainer(
        settings=resolved_settings,
        photo_repository=photo_repository,
        intake=intake,
        normalizer=normalizer,
        preview_decoder=preview_decoder,
        coordinator=coordinator,
        upload_sessions=upload_sessions,
        capture_session=capture_session,
        admin_gallery=GalleryViewModel(photo_repository),
        admin_gate=AdminGate(resolved_settings.admin_password),
        tally=SharedPhotoTally(),
        close_resources=close_resources,
    )
