"""Supabase implementation for saved spaces."""

from dataclasses import dataclass

import httpx
from supabase import Client, PostgrestAPIError

from ordo.domain.errors import PersistenceError
from ordo.domain.spaces import SavedSpace, SpaceKind
from ordo.services.library import SpaceRepository

_COLUMNS = "id, ownerid, name, date, image, beforeimage, type, note"

_FIELD_COLUMNS = {
    "name": "name",
    "note": "note",
    "after_image": "image",
    "before_image": "beforeimage",
}


@dataclass
class SupabaseSpaceRepository(SpaceRepository):
    """Supabase-backed repository for the ``spaces`` table."""

    client: Client

    def list_spaces(self, owner_id: str) -> list[SavedSpace]:
        """Return the owner's spaces, newest first."""
        try:
            response = (
                self.client.table("spaces")
                .select(_COLUMNS)
                .eq("ownerid", owner_id)
                .order("id", desc=True)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError() from exc
        return [_parse_space(row) for row in response.data or []]

    def create_space(self, space: SavedSpace) -> None:
        """Insert a space row."""
        try:
            response = self.client.table("spaces").insert(_space_row(space)).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError("We couldn't save this space.") from exc
        if not response.data:
            raise PersistenceError("We couldn't save this space.")

    def update_space(self, space_id: str, changes: dict[str, object]) -> None:
        """Update selected columns of a space row."""
        payload = {_FIELD_COLUMNS[name]: value for name, value in changes.items()}
        try:
            self.client.table("spaces").update(payload).eq("id", space_id).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError("We couldn't update this space.") from exc

    def delete_space(self, space_id: str) -> None:
        """Delete a space row; missing rows are ignored."""
        try:
            self.client.table("spaces").delete().eq("id", space_id).execute()
        except (PostgrestAPIError, httpx.HTTPError) as exc:
            raise PersistenceError("We couldn't delete this space.") from exc


def _space_row(space: SavedSpace) -> dict[str, object]:
    return {
        "id": space.id,
        "ownerid": space.owner_id,
        "name": space.name,
        "date": space.created_date,
        "image": space.after_image,
        "beforeimage": space.before_image,
        "type": space.kind.value,
        "note": space.note,
    }


def _parse_space(row: dict[str, object]) -> SavedSpace:
    return SavedSpace(
        id=str(row["id"]),
        owner_id=str(row["ownerid"]),
        name=str(row.get("name") or ""),
        created_date=str(row.get("date") or ""),
        after_image=str(row.get("image") or ""),
        before_image=row.get("beforeimage"),
        kind=SpaceKind(row.get("type") or SpaceKind.SCAN.value),
        note=row.get("note"),
    )
