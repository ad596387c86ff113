"""Services for managing a user's library of saved spaces."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Protocol

from ordo.domain.errors import PersistenceError
from ordo.domain.spaces import EDITABLE_FIELDS, SavedSpace, SpaceKind

RECENT_LIMIT = 3

_logger = logging.getLogger(__name__)


class SpaceRepository(Protocol):
    """Persistence interface for saved spaces."""

    def list_spaces(self, owner_id: str) -> list[SavedSpace]:
        """Return every space owned by a user."""

    def create_space(self, space: SavedSpace) -> None:
        """Insert a new space."""

    def update_space(self, space_id: str, changes: dict[str, object]) -> None:
        """Merge changes into an existing space."""

    def delete_space(self, space_id: str) -> None:
        """Delete a space; deleting a missing id is not an error."""


def _epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def format_display_date(value: date) -> str:
    """Format a date like ``Oct 18, 2026``."""
    return f"{value:%b} {value.day}, {value.year}"


def sort_newest_first(spaces: list[SavedSpace]) -> list[SavedSpace]:
    """Order spaces by id, newest first.

    Ids are decimal timestamps, so shorter ids are older.
    """
    return sorted(spaces, key=lambda space: (len(space.id), space.id), reverse=True)


@dataclass
class LibraryService:
    """Owns the active user's ordered collection of saved spaces."""

    repository: SpaceRepository
    max_spaces: int | None = None
    clock: Callable[[], int] = _epoch_millis
    today: Callable[[], date] = date.today
    owner_id: str | None = None
    spaces: list[SavedSpace] = field(default_factory=list)
    _last_id: int = field(default=0, init=False, repr=False)

    async def load(self, owner_id: str) -> list[SavedSpace]:
        """Load the owner's spaces; a failed read leaves the library empty."""
        self.owner_id = owner_id
        try:
            spaces = await asyncio.to_thread(self.repository.list_spaces, owner_id)
        except PersistenceError:
            _logger.warning("Failed to load library for %s", owner_id, exc_info=True)
            spaces = []
        if self.owner_id != owner_id:
            return []
        self.spaces = sort_newest_first(spaces)
        return self.spaces

    def list_spaces(self) -> list[SavedSpace]:
        """Return all spaces, newest first."""
        return list(self.spaces)

    def recent(self, limit: int = RECENT_LIMIT) -> list[SavedSpace]:
        """Return the newest spaces for compact previews."""
        return self.spaces[:limit]

    def get(self, space_id: str) -> SavedSpace | None:
        """Return a loaded space by id, if present."""
        return next((space for space in self.spaces if space.id == space_id), None)

    async def create(  # noqa: PLR0913
        self,
        *,
        name: str,
        after_image: str,
        before_image: str | None,
        kind: SpaceKind,
        note: str | None = None,
    ) -> SavedSpace:
        """Save a new space, evicting the oldest ones beyond the local cap."""
        owner_id = self._require_owner()
        if not name.strip():
            raise ValueError("name must not be empty")
        space = SavedSpace(
            id=self._next_id(),
            owner_id=owner_id,
            name=name.strip(),
            created_date=format_display_date(self.today()),
            after_image=after_image,
            before_image=before_image,
            kind=kind,
            note=note,
        )
        await asyncio.to_thread(self.repository.create_space, space)
        if self.max_spaces is not None:
            await self._evict_overflow(owner_id)
        fallback = sort_newest_first([space, *self.spaces])
        if self.max_spaces is not None:
            fallback = fallback[: self.max_spaces]
        await self._refresh(owner_id, fallback)
        return space

    async def rename(self, space_id: str, name: str) -> bool:
        """Rename a space; blank names are ignored without touching storage."""
        if not name.strip():
            return False
        await self.update(space_id, {"name": name.strip()})
        return True

    async def update(self, space_id: str, changes: dict[str, object]) -> None:
        """Merge partial changes into a space (last write wins)."""
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        name = changes.get("name")
        if "name" in changes and (not isinstance(name, str) or not name.strip()):
            raise ValueError("name must not be empty")
        owner_id = self._require_owner()
        await asyncio.to_thread(self.repository.update_space, space_id, dict(changes))
        fallback = [
            replace(space, **changes) if space.id == space_id else space
            for space in self.spaces
        ]
        await self._refresh(owner_id, fallback)

    async def delete(self, space_id: str) -> None:
        """Delete a space; repeating the call is harmless."""
        owner_id = self._require_owner()
        await asyncio.to_thread(self.repository.delete_space, space_id)
        remaining = [space for space in self.spaces if space.id != space_id]
        await self._refresh(owner_id, remaining)

    def clear(self) -> None:
        """Forget the loaded owner and collection."""
        self.owner_id = None
        self.spaces = []

    def _require_owner(self) -> str:
        if self.owner_id is None:
            raise ValueError("No library owner is loaded")
        return self.owner_id

    def _next_id(self) -> str:
        stamp = max(self.clock(), self._last_id + 1)
        self._last_id = stamp
        return str(stamp)

    async def _evict_overflow(self, owner_id: str) -> None:
        try:
            stored = sort_newest_first(
                await asyncio.to_thread(self.repository.list_spaces, owner_id)
            )
            for space in stored[self.max_spaces :]:
                _logger.info("Evicting oldest space %s", space.id)
                await asyncio.to_thread(self.repository.delete_space, space.id)
        except PersistenceError:
            _logger.warning("Failed to evict old spaces", exc_info=True)

    async def _refresh(self, owner_id: str, fallback: list[SavedSpace]) -> None:
        """Re-read the collection, keeping a local projection if the read fails.

        Nothing is written back once the library belongs to someone else.
        """
        if self.owner_id != owner_id:
            _logger.info("Library owner changed; skipping refresh for %s", owner_id)
            return
        try:
            spaces = await asyncio.to_thread(self.repository.list_spaces, owner_id)
        except PersistenceError:
            _logger.warning("Failed to reload library", exc_info=True)
            spaces = fallback
        if self.owner_id != owner_id:
            return
        self.spaces = sort_newest_first(spaces)
