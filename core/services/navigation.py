"""Cyclic cursor arithmetic over the session's item sequence."""

from __future__ import annotations

from loguru import logger

from core.models import MediaItem
from core.services.precache import PrecacheCache


class NavigationEngine:
    """Owns the circular cursor and the precache window around it.

    The item list is shared with the session; deletions mutate it in place
    and then call `jump_to` to land on the surviving item.
    """

    def __init__(
        self,
        items: list[MediaItem],
        cursor: int = 0,
        precache: PrecacheCache | None = None,
    ) -> None:
        self._items = items
        self._precache = precache or PrecacheCache(loader=None)
        self._cursor = 0
        if items:
            self._cursor = cursor % len(items)
        self._refresh_precache()

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def items(self) -> list[MediaItem]:
        return self._items

    @property
    def current(self) -> MediaItem:
        return self._items[self._cursor]

    @property
    def precache(self) -> PrecacheCache:
        return self._precache

    @property
    def precache_window(self) -> tuple[int, ...]:
        """Distinct indices of (previous, current, next), modulo n."""
        n = len(self._items)
        if n == 0:
            return ()
        window: list[int] = []
        for offset in (-1, 0, 1):
            idx = (self._cursor + offset + n) % n
            if idx not in window:
                window.append(idx)
        return tuple(window)

    def advance(self, direction: int) -> int:
        """Move the cursor by one step in `direction` (+1 or -1), wrapping."""
        if direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {direction}")
        n = len(self._items)
        if n == 0:
            return self._cursor
        self._cursor = (self._cursor + direction + n) % n
        self._refresh_precache()
        return self._cursor

    def jump_to(self, index: int) -> int:
        """Place the cursor on `index` without a transition."""
        n = len(self._items)
        if not 0 <= index < n:
            raise IndexError(f"index {index} out of range for {n} items")
        self._cursor = index
        self._refresh_precache()
        logger.debug("Jumped to index {}", index)
        return self._cursor

    def clear(self) -> None:
        """Drop every precached resource."""
        self._precache.clear()

    def _refresh_precache(self) -> None:
        self._precache.refresh(self._items[i] for i in self.precache_window)
