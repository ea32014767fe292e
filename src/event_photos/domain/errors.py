"""Error taxonomy for the photo pipeline."""


class PhotoAppError(Exception):
    """Base class for user-facing pipeline errors."""


class ValidationError(PhotoAppError):
    """A file, batch, or edit was rejected before any work started."""


class EncodingError(PhotoAppError):
    """An image could not be normalized to JPEG."""


class SubmissionError(PhotoAppError):
    """The remote store rejected a photo or could not be reached."""


class AcquisitionError(PhotoAppError):
    """The camera device could not be opened or read."""


class GalleryError(PhotoAppError):
    """Listing or deleting photos failed."""


class AllUploadsFailedError(PhotoAppError):
    """Every entry of a batch failed."""

    def __init__(self, message: str, entries: list | None = None) -> None:
        super().__init__(message)
        self.entries = list(entries or [])


class UploadInProgressError(ValidationError):
    """The surface can't change while its batch is being submitted."""
