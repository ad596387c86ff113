"""Space repository kept in the local key-value store."""

from dataclasses import dataclass

from ordo.domain.spaces import SavedSpace, SpaceKind
from ordo.services.library import SpaceRepository
from ordo.services.storage import KeyValueStore

SPACES_KEY = "saved_spaces"


@dataclass
class LocalSpaceRepository(SpaceRepository):
    """Stores every user's spaces as one list under a single key."""

    store: KeyValueStore

    def list_spaces(self, owner_id: str) -> list[SavedSpace]:
        """Return every space owned by a user."""
        return [
            _parse_space(row)
            for row in self._rows()
            if row.get("ownerId") == owner_id
        ]

    def create_space(self, space: SavedSpace) -> None:
        """Insert a new space."""
        rows = self._rows()
        rows.append(_space_row(space))
        self.store.set(SPACES_KEY, rows)

    def update_space(self, space_id: str, changes: dict[str, object]) -> None:
        """Merge changes into an existing space."""
        rows = self._rows()
        for row in rows:
            if row.get("id") == space_id:
                row.update(_change_row(changes))
        self.store.set(SPACES_KEY, rows)

    def delete_space(self, space_id: str) -> None:
        """Delete a space if it exists."""
        rows = self._rows()
        remaining = [row for row in rows if row.get("id") != space_id]
        if len(remaining) != len(rows):
            self.store.set(SPACES_KEY, remaining)

    def delete_owner_spaces(self, owner_id: str) -> None:
        """Delete every space owned by a user."""
        rows = [row for row in self._rows() if row.get("ownerId") != owner_id]
        self.store.set(SPACES_KEY, rows)

    def _rows(self) -> list[dict[str, object]]:
        raw = self.store.get(SPACES_KEY)
        if not isinstance(raw, list):
            return []
        return [row for row in raw if isinstance(row, dict)]


_FIELD_KEYS = {
    "name": "name",
    "note": "note",
    "after_image": "image",
    "before_image": "beforeImage",
}


def _space_row(space: SavedSpace) -> dict[str, object]:
    return {
        "id": space.id,
        "ownerId": space.owner_id,
        "name": space.name,
        "date": space.created_date,
        "image": space.after_image,
        "beforeImage": space.before_image,
        "type": space.kind.value,
        "note": space.note,
    }


def _change_row(changes: dict[str, object]) -> dict[str, object]:
    return {_FIELD_KEYS[name]: value for name, value in changes.items()}


def _parse_space(row: dict[str, object]) -> SavedSpace:
    return SavedSpace(
        id=str(row["id"]),
        owner_id=str(row["ownerId"]),
        name=str(row.get("name", "")),
        created_date=str(row.get("date", "")),
        after_image=str(row.get("image", "")),
        before_image=row.get("beforeImage"),
        kind=SpaceKind(row.get("type", SpaceKind.SCAN.value)),
        note=row.get("note"),
    )
