"""Simple key-value store abstractions."""

import copy
from dataclasses import dataclass
from typing import Protocol


class KeyValueStore(Protocol):
    """Interface for a small persistent key-value store."""

    def get(self, key: str) -> object | None:
        """Return the stored value, if present."""

    def set(self, key: str, value: object) -> None:
        """Store a JSON-compatible value under a key."""

    def delete(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""


@dataclass
class InMemoryStore(KeyValueStore):
    """In-memory store used for tests and ephemeral runs."""

    _entries: dict[str, object]

    def __init__(self) -> None:
        self._entries = {}

    def get(self, key: str) -> object | None:
        """Return a copy of the stored value."""
        if key not in self._entries:
            return None
        return copy.deepcopy(self._entries[key])

    def set(self, key: str, value: object) -> None:
        """Store a copy of the value."""
        self._entries[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        self._entries.pop(key, None)
