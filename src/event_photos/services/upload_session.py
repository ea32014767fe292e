"""Multi-file upload surface state."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from event_photos.domain.errors import (
    AllUploadsFailedError,
    UploadInProgressError,
    ValidationError,
)
from event_photos.domain.uploads import (
    PendingUpload,
    SourceImage,
    apply_patch,
    find_entry,
)
from event_photos.services.intake import FileIntake, IntakeResult, PreviewDecoder
from event_photos.services.uploads import (
    BatchOutcome,
    CompletionCallback,
    UploadCoordinator,
)

logger = logging.getLogger(__name__)


@dataclass
class UploadSession:
    """Files a guest picked, their comments and the submission state."""

    intake: FileIntake
    coordinator: UploadCoordinator
    preview_decoder: PreviewDecoder
    id: UUID = field(default_factory=uuid4)
    entries: list[PendingUpload] = field(default_factory=list)
    error: str | None = None
    is_uploading: bool = False
    closed: bool = False
    _preview_tasks: dict[UUID, asyncio.Task[None]] = field(
        default_factory=dict, repr=False
    )

    async def add_files(self, candidates: Iterable[SourceImage]) -> IntakeResult:
        """Run intake and start decoding previews for the admitted files."""
        self._ensure_editable()
        result = self.intake.admit(candidates, self.entries)
        self.entries = result.entries
        self.error = result.error
        for entry in result.admitted:
            task = asyncio.create_task(self._decode_preview(entry))
            self._preview_tasks[entry.id] = task
            task.add_done_callback(
                lambda done, entry_id=entry.id: self._forget_preview(entry_id, done)
            )
        return result

    async def previews_ready(self) -> None:
        """Wait for outstanding preview decoding."""
        tasks = list(self._preview_tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def update_comment(self, entry_id: UUID, comment: str) -> PendingUpload:
        """Change the comment of a pending entry."""
        self._ensure_editable()
        self.entries = apply_patch(self.entries, entry_id, {"comment": comment})
        return next(entry for entry in self.entries if entry.id == entry_id)

    def remove_file(self, entry_id: UUID) -> None:
        """Drop a pending entry from the batch."""
        self._ensure_editable()
        if find_entry(self.entries, entry_id) is None:
            raise KeyError(entry_id)
        self.entries = [entry for entry in self.entries if entry.id != entry_id]
        task = self._preview_tasks.pop(entry_id, None)
        if task is not None:
            task.cancel()

    async def submit(self, on_complete: CompletionCallback) -> BatchOutcome:
        """Upload every entry; the session closes once something succeeded."""
        self._ensure_editable()
        await self.previews_ready()
        self._ensure_editable()
        self.is_uploading = True
        self.error = None
        try:
            outcome = await self.coordinator.submit_batch(
                self.entries, on_complete, on_update=self._track
            )
        except AllUploadsFailedError as exc:
            self.error = str(exc)
            self.entries = [
                PendingUpload.create(entry.source, entry.comment, preview=entry.preview)
                for entry in self.entries
            ]
            raise
        except ValidationError as exc:
            self.error = str(exc)
            raise
        finally:
            self.is_uploading = False
        self.error = outcome.message
        self.closed = True
        return outcome

    async def close(self) -> None:
        """Discard pending entries; not allowed while a batch is running."""
        if self.is_uploading:
            raise UploadInProgressError(
                "An upload is in progress and can't be cancelled."
            )
        for task in self._preview_tasks.values():
            task.cancel()
        self._preview_tasks.clear()
        self.entries = []
        self.closed = True

    def _track(self, entries: list[PendingUpload]) -> None:
        self.entries = entries

    def _ensure_editable(self) -> None:
        if self.closed:
            raise ValidationError("This upload has already finished.")
        if self.is_uploading:
            raise UploadInProgressError("Photos are being uploaded. Please wait.")

    def _forget_preview(self, entry_id: UUID, task: asyncio.Task[None]) -> None:
        if self._preview_tasks.get(entry_id) is task:
            del self._preview_tasks[entry_id]

    async def _decode_preview(self, entry: PendingUpload) -> None:
        try:
            preview = await self.preview_decoder.decode(entry.source)
        except Exception:
            logger.warning(
                "Failed to decode preview",
                exc_info=True,
                extra={"entry_id": str(entry.id), "file_name": entry.source.name},
            )
            return
        if find_entry(self.entries, entry.id) is not None:
            self.entries = apply_patch(self.entries, entry.id, {"preview": preview})


@dataclass
class _StoredSession:
    session: UploadSession
    expires_at: datetime


@dataclass
class UploadSessionStore:
    """Keeps open upload sessions for a limited time."""

    ttl_seconds: int
    _sessions: dict[UUID, _StoredSession] = field(default_factory=dict)

    def add(self, session: UploadSession) -> UploadSession:
        """Store a session and start its expiry clock."""
        self._sessions[session.id] = _StoredSession(
            session=session, expires_at=self._expiry()
        )
        return session

    async def get(self, session_id: UUID) -> UploadSession | None:
        """Return a live session and extend its expiry."""
        await self.evict_expired()
        stored = self._sessions.get(session_id)
        if stored is None:
            return None
        stored.expires_at = self._expiry()
        return stored.session

    async def discard(self, session_id: UUID) -> None:
        """Close and forget a session."""
        stored = self._sessions.get(session_id)
        if stored is None:
            return
        if not stored.session.closed:
            await stored.session.close()
        self._sessions.pop(session_id, None)

    async def evict_expired(self) -> None:
        """Close sessions that outlived their TTL, skipping running uploads."""
        now = datetime.now(tz=UTC)
        for session_id, stored in list(self._sessions.items()):
            if stored.expires_at > now or stored.session.is_uploading:
                continue
            self._sessions.pop(session_id, None)
            if not stored.session.closed:
                await stored.session.close()
            logger.info("Expired upload session", extra={"session_id": str(session_id)})

    def _expiry(self) -> datetime:
        return datetime.now(tz=UTC) + timedelta(seconds=self.ttl_seconds)
