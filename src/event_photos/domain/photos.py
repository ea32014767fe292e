"""Models for photo records owned by the hosted backend."""

from pydantic import BaseModel, StrictStr


class PhotoRecord(BaseModel):
    """A stored photo row."""

    id: StrictStr
    image_url: StrictStr
    comment: str | None = None
    created_at: str | None = None
