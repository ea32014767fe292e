"""Supabase-backed photo repository."""

from dataclasses import dataclass

from supabase import Client

from event_photos.services.gallery import PhotoRepository


@dataclass
class SupabasePhotoRepository(PhotoRepository):
    """Supabase implementation for the photos table."""

    client: Client
    table: str = "photos"

    def list_photos(self) -> list[dict[str, object]]:
        """Return all photo rows, newest first."""
        response = (
            self.client.table(self.table)
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        return list(response.data or [])

    def delete_photo(self, photo_id: str) -> None:
        """Delete a photo row by id."""
        self.client.table(self.table).delete().eq("id", photo_id).execute()
