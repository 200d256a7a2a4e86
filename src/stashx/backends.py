"""Backing stores — durable string slots a StateStore persists into.

A backend is anything with get(key) -> str | None and set(key, value).
StateStore only ever reads once at construction and overwrites the whole
slot on every mutation, so backends need no partial-update support.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Mapping, Protocol, runtime_checkable
from urllib.parse import quote

# Leaves room for ".json.tmp" under the usual 255-byte file name limit.
MAX_NAME_BYTES = 200


@runtime_checkable
class KVBackend(Protocol):
    """String key-value slot storage."""

    def get(self, key: str) -> str | None:
        """Return the stored string, or None when the key was never set."""
        ...

    def set(self, key: str, value: str) -> None:
        """Overwrite the value stored under key."""
        ...


class MemoryBackend:
    """Dict-backed backend. Lives as long as the instance does."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial) if initial else {}

    @property
    def data(self) -> dict[str, str]:
        return self._data

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def __repr__(self) -> str:
        return f"MemoryBackend({sorted(self._data)!r})"


class FileBackend:
    """One UTF-8 file per key inside a directory.

    Keys are percent-encoded into file names, so any string is a valid key.
    Encoded names longer than MAX_NAME_BYTES are replaced by a SHA-256 digest
    prefixed with "%sha256-", which no percent-encoded name can start with.
    Writes go to a temp file first and are then swapped into place.
    """

    def __init__(self, directory: str | os.PathLike) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        name = quote(key, safe="")
        if len(name) > MAX_NAME_BYTES:
            name = "%sha256-" + hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._directory / (name + ".json")

    def get(self, key: str) -> str | None:
        try:
            return self.path_for(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as f:
                f.write(value)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        tmp_path.replace(path)

    def __repr__(self) -> str:
        return f"FileBackend({str(self._directory)!r})"
