"""Key/value backends for persisted game entries.

Values are opaque strings (the callers store JSON text), so every backend
behaves like a browser's local storage: independent entries, last write wins.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Protocol

STORAGE_SUFFIX = ".json"
_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")

logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def keys(self) -> list[str]:
        ...


class MemoryStorage:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._entries: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._entries.get(key)

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise ValueError("storage values must be strings")
        self._entries[key] = value

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._entries)


def write_atomic_text(path: str | Path, text: str) -> None:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=destination.parent,
            delete=False,
            suffix=".tmp",
        ) as temp_file:
            temp_file.write(text)
            temp_file.flush()
            os.fsync(temp_file.fileno())
            temp_path = Path(temp_file.name)
        os.replace(temp_path, destination)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


class FileStorage:
    """One ``<key>.json`` file per entry under ``root``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        if not isinstance(key, str) or not _KEY_RE.match(key):
            raise ValueError(f"invalid storage key: {key!r}")
        return self.root / f"{key}{STORAGE_SUFFIX}"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise ValueError("storage values must be strings")
        write_atomic_text(self._path(key), value)
        logger.debug("wrote %s (%d bytes)", key, len(value))

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(path.stem for path in self.root.glob(f"*{STORAGE_SUFFIX}") if _KEY_RE.match(path.stem))
