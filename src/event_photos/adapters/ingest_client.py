"""Client for the photo ingest edge function."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from event_photos.domain.errors import SubmissionError
from event_photos.domain.photos import PhotoRecord

logger = logging.getLogger(__name__)


class PhotoIngestClient(Protocol):
    """Interface for submitting photos to the hosted backend."""

    async def submit_photo(
        self, data: bytes, content_type: str, comment: str
    ) -> PhotoRecord | None:
        """Store a photo with its comment and return the created record."""


@dataclass
class HttpxPhotoIngestClient(PhotoIngestClient):
    """Ingest client posting multipart forms with httpx."""

    function_url: str
    api_key: str
    http_client: httpx.AsyncClient
    timeout: float = 60.0

    @classmethod
    def create(
        cls, function_url: str, api_key: str, timeout: float = 60.0
    ) -> "HttpxPhotoIngestClient":
        """Create an ingest client with a managed httpx session."""
        return cls(
            function_url=function_url,
            api_key=api_key,
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def submit_photo(
        self, data: bytes, content_type: str, comment: str
    ) -> PhotoRecord | None:
        """Post the photo to the edge function."""
        file_name = f"photo_{datetime.now(tz=UTC).strftime('%Y%m%d%H%M%S%f')}.jpg"
        try:
            response = await self.http_client.post(
                self.function_url,
                files={"file": (file_name, data, content_type)},
                data={"comment": comment},
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise SubmissionError(f"Could not reach the upload service: {exc}") from exc

        if response.is_error:
            raise SubmissionError(_error_message(response))
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Upload service returned a non-JSON body")
            return None
        return _parse_record(payload)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _error_message(response: httpx.Response) -> str:
    """Extract the edge function error text, if any."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return f"Upload failed with status {response.status_code}"


def _parse_record(payload: object) -> PhotoRecord | None:
    data = payload.get("data") if isinstance(payload, dict) else None
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict):
        return None
    try:
        return PhotoRecord.model_validate(data)
    except PydanticValidationError:
        logger.warning("Upload service returned an unexpected record")
        return None
