"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_anon_key: str
    admin_password: str
    upload_function: str = "upload-photo"
    photos_table: str = "photos"
    max_file_size_bytes: int = 10 * MIB
    max_aggregate_bytes: int = 30 * MIB
    max_file_count: int = 3
    jpeg_quality: float = 0.9
    preview_max_dimension: int = 512
    camera_user_index: int = 1
    camera_environment_index: int = 0
    camera_frame_width: int = 1280
    camera_frame_height: int = 720
    upload_session_ttl_seconds: int = 3600
    submission_timeout_seconds: float = 60.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def upload_function_url(self) -> str:
        """Return the URL of the photo ingest edge function."""
        return f"{self.supabase_url.rstrip('/')}/functions/v1/{self.upload_function}"


def format_megabytes(size_bytes: int) -> str:
    """Format a byte limit the way it is shown to guests, e.g. ``10MB``."""
    value = size_bytes / MIB
    if value.is_integer():
        return f"{int(value)}MB"
    return f"{value:.1f}MB"
