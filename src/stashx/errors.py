"""Exception hierarchy for stashx."""

from __future__ import annotations


class StashError(Exception):
    """Base exception for all stashx errors."""


class CorruptStateError(StashError):
    """Persisted payload could not be loaded as a property bag."""

    def __init__(self, message: str, *, key: str, payload: str) -> None:
        self.key = key
        self.payload = payload
        super().__init__(message)
