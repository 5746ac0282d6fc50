"""Core domain models for media items, collections and presentation state."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any


class MediaKind(Enum):
    """Kind of a media item; decides precache and playback behavior."""

    IMAGE = "image"
    VIDEO = "video"

    @classmethod
    def decode(cls, value: str | None) -> MediaKind:
        """Decode a stored kind, accepting legacy `MediaType.video` strings.

        Unknown values fall back to IMAGE.
        """
        raw = str(value or "").strip().lower()
        if raw.endswith("video"):
            return cls.VIDEO
        return cls.IMAGE


@dataclass(frozen=True)
class MediaItem:
    """A single entry of a collection."""

    id: str
    path: str
    added_at: datetime
    order: int
    kind: MediaKind = MediaKind.IMAGE
    thumbnail_path: str | None = None

    @property
    def is_video(self) -> bool:
        return self.kind is MediaKind.VIDEO

    @property
    def is_image(self) -> bool:
        return self.kind is MediaKind.IMAGE

    def with_order(self, order: int) -> MediaItem:
        """Return a copy of this item placed at `order`."""
        return replace(self, order=order)


@dataclass
class Collection:
    """A named, ordered sequence of media items.

    `ephemeral` marks collections assembled from ad-hoc content that were
    never persisted.
    """

    id: str
    name: str
    created_at: datetime
    updated_at: datetime
    items: list[MediaItem] = field(default_factory=list)
    ephemeral: bool = False

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def thumbnail_path(self) -> str | None:
        """Thumbnail of the first item, falling back to its source path."""
        if not self.items:
            return None
        first = self.items[0]
        return first.thumbnail_path or first.path

    def copy(self) -> Collection:
        """Return a value copy whose item list is independent of this one."""
        return replace(self, items=list(self.items))

    def sorted_by_order(self) -> Collection:
        """Return a copy with items sorted by `order`."""
        return replace(self, items=sorted(self.items, key=lambda it: it.order))


def reindex(items: list[MediaItem]) -> list[MediaItem]:
    """Return `items` with orders rewritten to the dense range 0..n-1."""
    return [it if it.order == i else it.with_order(i) for i, it in enumerate(items)]


class PresentationPhase(Enum):
    """Lifecycle phase of a presentation session."""

    ACTIVE = "active"
    EXIT_REQUESTED = "exit_requested"
    LOCKING = "locking"
    AWAITING_DISPOSITION = "awaiting_disposition"
    SAVING = "saving"
    EXITING = "exiting"


class ExitIntent(Enum):
    """Gesture that asked the session to end."""

    EXIT_CONTROL = "exit_control"
    BACK = "back"
    SECURE = "secure"


class Disposition(Enum):
    """Choice offered for an ephemeral collection on exit."""

    SAVE = "save"
    DISCARD = "discard"
    CANCEL = "cancel"


@dataclass
class DisplayFrame:
    """What the view should render for the item under the cursor.

    Attributes:
        item: The current media item.
        image: Precached image for IMAGE items, if materialized.
        unavailable: True when the source could not be read.
        error: Human readable reason when `unavailable` is set.
    """

    item: MediaItem
    image: Any | None = None
    unavailable: bool = False
    error: str | None = None
