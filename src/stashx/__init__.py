"""stashx: a persisted property bag with synchronous observers."""

from importlib.metadata import version as _version

__version__ = _version("stashx")

from stashx.errors import StashError, CorruptStateError
from stashx.backends import KVBackend, MemoryBackend, FileBackend
from stashx.store import StateStore
# textual NOT auto-imported: opt-in only

__all__ = [
    "StateStore",
    "KVBackend",
    "MemoryBackend",
    "FileBackend",
    "StashError",
    "CorruptStateError",
]
