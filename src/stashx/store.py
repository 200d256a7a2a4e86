"""StateStore — a persisted property bag with synchronous observers.

The whole bag lives under one key of a KVBackend. Every applied mutation
rewrites that key with the full JSON-encoded bag, then calls each observer
with no arguments in registration order.

add_property only inserts, update_property only overwrites, remove_property
only deletes. A call whose guard fails is a silent no-op: nothing is written
and nobody is notified. The bool return says whether the call applied.

state and listeners return the live objects, not copies. Mutating them
directly skips persistence and notification.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from stashx.backends import KVBackend
from stashx.errors import CorruptStateError

logger = logging.getLogger("stashx.store")

Listener = Callable[[], None]


class StateStore:
    """Observable key-value container persisted to a backend slot."""

    def __init__(self, key: str, backend: KVBackend, *, strict: bool = False) -> None:
        self._key = key
        self._backend = backend
        self._strict = strict
        self._state: dict[str, Any] = self._load()
        self._listeners: list[Listener] = []

    @property
    def key(self) -> str:
        return self._key

    @property
    def state(self) -> dict[str, Any]:
        return self._state

    @property
    def listeners(self) -> list[Listener]:
        return self._listeners

    # --- Mutations (persist + notify) ---

    def add_property(self, name: str, value: Any) -> bool:
        """Insert name -> value. No-op if name is already present."""
        if name in self._state:
            return False
        self._state[name] = value
        self._commit()
        return True

    def update_property(self, name: str, value: Any) -> bool:
        """Overwrite an existing property. No-op if name is absent."""
        if name not in self._state:
            return False
        self._state[name] = value
        self._commit()
        return True

    def remove_property(self, name: str) -> bool:
        """Delete an existing property. No-op if name is absent."""
        if name not in self._state:
            return False
        del self._state[name]
        self._commit()
        return True

    # --- Observers ---

    def subscribe(self, listener: Listener) -> None:
        """Register listener. Registering the same callable twice notifies it twice."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        """Remove every registration of listener. Unknown listeners are ignored."""
        self._listeners[:] = [fn for fn in self._listeners if fn is not listener]

    # --- Reads ---

    def get(self, name: str, default: Any = None) -> Any:
        return self._state.get(name, default)

    def __contains__(self, name: object) -> bool:
        return name in self._state

    def __len__(self) -> int:
        return len(self._state)

    def __repr__(self) -> str:
        return f"StateStore({self._key!r}, {self._state!r})"

    # --- Internals ---

    def _load(self) -> dict[str, Any]:
        raw = self._backend.get(self._key)
        if not raw:
            return {}
        try:
            loaded = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            return self._discard(raw, f"invalid JSON: {exc}")
        if not isinstance(loaded, dict):
            return self._discard(raw, f"expected an object, got {type(loaded).__name__}")
        logger.debug("Loaded %r: %d properties", self._key, len(loaded))
        return loaded

    def _discard(self, raw: str, reason: str) -> dict[str, Any]:
        if self._strict:
            raise CorruptStateError(
                f"Stored state for {self._key!r} is unusable: {reason}",
                key=self._key,
                payload=raw,
            )
        logger.warning("Discarding stored state for %r: %s", self._key, reason)
        return {}

    def _commit(self) -> None:
        # No rollback: if encoding or the write fails, the in-memory change stands.
        payload = json.dumps(self._state)
        self._backend.set(self._key, payload)
        logger.debug("Persisted %r (%d chars)", self._key, len(payload))
        self._notify()

    def _notify(self) -> None:
        # Snapshot: subscribe/unsubscribe from inside a listener applies to the next round.
        for listener in list(self._listeners):
            listener()
