"""Domain models for saved spaces."""

from dataclasses import dataclass
from enum import StrEnum


class SpaceKind(StrEnum):
    """How a space was produced."""

    SCAN = "scan"
    DREAM = "dream"


@dataclass(frozen=True)
class SavedSpace:
    """Represents a before/after result stored in a user's library."""

    id: str
    owner_id: str
    name: str
    created_date: str
    after_image: str
    before_image: str | None
    kind: SpaceKind
    note: str | None = None


EDITABLE_FIELDS = frozenset({"name", "note", "after_image", "before_image"})
