"""Textual integration for stashx. Opt-in, requires textual.

A StoreBinding subscribes once to a StateStore and fans its notifications
out to UI refresh callbacks. Changes that land while the binding is paused
are folded into one refresh when the outermost pause exits.
"""

from __future__ import annotations

import copy
import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable

from textual.css.query import NoMatches

from stashx.store import StateStore

logger = logging.getLogger("stashx.textual")

_ABSENT = object()


class StoreBinding:
    """Delivers StateStore changes to a Textual app.

    Delivery is skipped while the app is not running. Notifications raised
    off the thread that created the binding go through app.call_from_thread.
    NoMatches from a refresh callback (widget not mounted yet, or already
    gone) is logged and the remaining callbacks still run.
    """

    def __init__(self, app, store: StateStore) -> None:
        self._app = app
        self._store = store
        self._thread = threading.get_ident()
        self._refreshers: list[Callable[[], None]] = []
        self._pause_depth = 0
        self._missed = False
        self._disposed = False
        # Bound methods are rebuilt on each access; keep one for unsubscribe.
        self._listener = self._on_change
        store.subscribe(self._listener)

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def paused(self) -> bool:
        return self._pause_depth > 0

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on_change(self, fn: Callable[[], None]) -> None:
        """Call fn (no arguments) after every applied store mutation."""
        self._refreshers.append(fn)

    def watch_property(
        self,
        name: str,
        effect: Callable[[Any], None],
        *,
        default: Any = None,
        fire_immediately: bool = False,
    ) -> None:
        """Call effect(value) when the value of one property changes.

        A removed property is reported as default. Values are compared
        against a deep copy, so in-place edits to nested values are seen.
        """
        last = [copy.deepcopy(self._store.get(name, _ABSENT))]

        def _check() -> None:
            current = self._store.get(name, _ABSENT)
            if current is last[0] or current == last[0]:
                return
            last[0] = copy.deepcopy(current)
            effect(default if current is _ABSENT else current)

        if fire_immediately:
            current = last[0]
            effect(default if current is _ABSENT else current)
        self._refreshers.append(_check)

    @contextmanager
    def pause(self):
        """Hold back refreshes, e.g. while widgets are being replaced.

        Nested pauses are allowed. If the store changed meanwhile, one
        refresh runs when the outermost pause exits.
        """
        self._pause_depth += 1
        try:
            yield self
        finally:
            self._pause_depth -= 1
        if self._pause_depth == 0 and self._missed:
            self._missed = False
            self._on_change()

    def dispose(self) -> None:
        """Unsubscribe from the store and drop all callbacks."""
        if self._disposed:
            return
        self._disposed = True
        self._store.unsubscribe(self._listener)
        self._refreshers.clear()

    def _on_change(self) -> None:
        if self._disposed or not self._app.is_running:
            return
        if self._pause_depth:
            self._missed = True
            return
        if threading.get_ident() != self._thread:
            self._app.call_from_thread(self._deliver)
        else:
            self._deliver()

    def _deliver(self) -> None:
        for fn in list(self._refreshers):
            try:
                fn()
            except NoMatches as exc:
                logger.debug("Skipped refresh for %r: %s", self._store.key, exc)


def bind(app, store: StateStore) -> StoreBinding:
    """Create a StoreBinding. Call .dispose() when the screen goes away."""
    return StoreBinding(app, store)
