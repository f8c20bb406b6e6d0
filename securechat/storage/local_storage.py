"""
File-backed string key-value store.

Plays the part a browser's localStorage plays for a web client: a flat
mapping of string keys to string values, shared by every client process
pointed at the same file.

File format: a single JSON object, {"key": "value", ...}

Every call re-reads the file, so a process always sees the latest write.
Writes replace the file atomically (temp file + os.replace) which keeps
readers from seeing a torn file, but there is no locking: two processes
doing read-modify-write at the same time will lose one of the writes.

Usage:
    store = LocalStorage(Path(".securechat/local_storage.json"))
    store.set_item("greeting", "hello")
    store.get_item("greeting")   # "hello"

    memory = LocalStorage()      # not persisted
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional


logger = logging.getLogger(__name__)


class StorageError(ValueError):
    """Raised when stored data cannot be read or has the wrong shape."""


class LocalStorage:
    """String key-value store persisted as one JSON file (or kept in memory)."""

    def __init__(self, path: Optional[Path] = None):
        """
        Args:
            path: JSON file to persist into, or None for an in-memory store
        """
        self.path = Path(path) if path is not None else None
        self._memory: Dict[str, str] = {}

    def _read(self) -> Dict[str, str]:
        if self.path is None:
            return dict(self._memory)

        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = f.read()
        except OSError as e:
            logger.error(f"Failed to read store {self.path}: {e}")
            raise

        if not raw.strip():
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Invalid JSON in store {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Store {self.path} must contain a JSON object")
        return data

    def _write(self, data: Dict[str, str]) -> None:
        if self.path is None:
            self._memory = dict(data)
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
                f.flush()
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.error(f"Failed to write store {self.path}: {e}")
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.debug(f"Store written: {self.path} ({len(data)} keys)")

    def get_item(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None."""
        value = self._read().get(key)
        if value is not None and not isinstance(value, str):
            raise StorageError(f"Value for {key!r} is not a string")
        return value

    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        if not isinstance(value, str):
            raise TypeError(f"value must be str, got {type(value)}")
        data = self._read()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        """Delete key if present."""
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def keys(self) -> List[str]:
        return list(self._read().keys())

    def clear(self) -> None:
        self._write({})
