"""Core service interfaces and shared data structures.

The session core talks to the platform (device lock), to storage and to the
event loop's timers only through the contracts below, so every session can
be driven by fakes in tests.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from core.models import Collection, MediaItem, PresentationPhase


class LockBridge(Protocol):
    """Platform capability to enter a secure display and lock the device."""

    def enter_secure_mode(self) -> None:
        """Begin the immersive/secure display state."""

    def exit_secure_mode(self) -> None:
        """Restore the normal display state."""

    async def lock(self) -> bool:
        """Request an immediate device lock.

        Returns True when confirmed, False when unsupported or failed.
        Implementations must not raise.
        """

    def is_auto_lock_capable(self) -> bool:
        """Return True if `lock()` is expected to succeed."""

    def request_auto_lock_capability(self) -> None:
        """Start the user-driven flow that grants lock permission."""


class CollectionStore(Protocol):
    """Durable persistence of named collections.

    Failures are reported as `PersistenceError`; unknown ids as
    `CollectionNotFoundError`. `persist` may return an awaitable.
    """

    def persist(self, name: str, items: list[MediaItem]) -> str | Awaitable[str]:
        """Store a new collection and return its id."""

    def remove(self, collection_id: str) -> None:
        """Delete a collection and its items."""

    def load(self, collection_id: str) -> Collection:
        """Return the collection with items sorted by order."""

    def list_all(self) -> list[Collection]:
        """Return all collections, most recently updated first."""

    def replace_items(self, collection_id: str, items: list[MediaItem]) -> None:
        """Overwrite the items of an existing collection."""


class TimerHandle(Protocol):
    """A timer owned by the event loop thread."""

    def start(self, interval_ms: int) -> None:
        """Arm the timer; periodic timers re-fire every `interval_ms`."""

    def stop(self) -> None:
        """Disarm the timer; no callback fires afterwards."""

    def is_active(self) -> bool:
        """Return True while armed."""


TimerFactory = Callable[[Callable[[], None], bool], TimerHandle]
"""Create a timer: `factory(callback, single_shot)`."""

ImageLoader = Callable[[str], Any]
"""Materialize the image at a path; raise `MediaUnavailable` on failure."""


class SessionListener:
    """Receives session notifications. All hooks are optional no-ops."""

    def on_cursor_changed(self, index: int) -> None:
        """The item under the cursor changed."""

    def on_phase_changed(self, phase: PresentationPhase) -> None:
        """The presentation phase changed."""

    def on_feedback(self, message: str) -> None:
        """Show a transient message to the user."""

    def on_removal_confirmation_requested(self, item: MediaItem) -> None:
        """Ask the user to confirm removing `item`."""

    def on_disposition_required(self) -> None:
        """Ask the user to Save, Discard or Cancel."""

    def on_save_failed(self, error: str) -> None:
        """Persisting failed; offer retry or discard."""

    def on_session_closed(self, saved_collection_id: str | None) -> None:
        """The session was torn down."""


@dataclass
class RemovalResult:
    """Outcome of removing one item from the session.

    Attributes:
        removed: The item taken out of the sequence.
        cursor: Cursor after the removal (None when the session ended).
        remaining: Number of items left.
        synced: False if reflecting the removal to the store failed.
    """

    removed: MediaItem
    cursor: int | None
    remaining: int
    synced: bool = True
