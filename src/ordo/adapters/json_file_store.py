"""File-backed key-value store."""

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from ordo.domain.errors import PersistenceError
from ordo.services.storage import KeyValueStore


@dataclass
class JsonFileStore(KeyValueStore):
    """Key-value store kept in a single JSON document on disk."""

    path: Path

    @classmethod
    def create(cls, path: str) -> "JsonFileStore":
        """Create a store, making its parent directory if needed."""
        resolved = Path(path).expanduser()
        resolved.parent.mkdir(parents=True, exist_ok=True)
        return cls(path=resolved)

    def get(self, key: str) -> object | None:
        """Return the stored value, if present."""
        return self._read().get(key)

    def set(self, key: str, value: object) -> None:
        """Store a value under a key."""
        entries = self._read()
        entries[key] = value
        self._write(entries)

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        entries = self._read()
        if key in entries:
            del entries[key]
            self._write(entries)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            raise PersistenceError() from exc
        return data if isinstance(data, dict) else {}

    def _write(self, entries: dict[str, object]) -> None:
        """Replace the file atomically so readers never see a partial write."""
        fd, temp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(entries, handle)
            os.replace(temp_path, self.path)
        except OSError as exc:
            Path(temp_path).unlink(missing_ok=True)
            raise PersistenceError() from exc
