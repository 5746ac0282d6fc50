"""Error taxonomy shared by the session core and its adapters."""

from __future__ import annotations

from dataclasses import dataclass


class PresentationError(Exception):
    """Base class for presentation session errors."""


class MediaUnavailable(PresentationError):
    """A media source is missing or unreadable at display time."""

    def __init__(self, path: str, reason: str = "unreadable") -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class LockUnavailable(PresentationError):
    """The platform cannot lock the device right now."""


class PersistenceError(PresentationError):
    """The collection store failed to read or write."""


class CollectionNotFoundError(PresentationError, LookupError):
    """No collection exists with the requested id."""

    def __init__(self, collection_id: str) -> None:
        super().__init__(f"Collection not found: {collection_id}")
        self.collection_id = collection_id


class SessionEnded(PresentationError):
    """The last item was removed; the session cannot continue empty."""


class EmptyCollectionError(PresentationError, ValueError):
    """A session or ephemeral collection was requested without items."""


class InvalidTransitionError(PresentationError, RuntimeError):
    """An exit protocol operation was invoked from a phase that forbids it."""


@dataclass(frozen=True)
class MediaRejected:
    """A path refused at ingestion time.

    Attributes:
        path: The supplied path.
        reason: Why it was refused.
    """

    path: str
    reason: str
