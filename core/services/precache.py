"""Bounded cache of materialized images around the cursor."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from core.errors import MediaUnavailable
from core.models import MediaItem
from core.services.interfaces import ImageLoader

PRECACHE_CAPACITY = 3


@dataclass
class _CacheEntry:
    item_id: str
    image: Any | None
    error: str | None = None


class PrecacheCache:
    """Keeps at most `capacity` images, keyed by item id.

    Only image items are materialized; videos are left to the player.
    A failed load is remembered so the view can show a placeholder without
    retrying on every frame.
    """

    def __init__(self, loader: ImageLoader | None, capacity: int = PRECACHE_CAPACITY) -> None:
        self._loader = loader
        self._cap = max(1, int(capacity or 1))
        self._data: OrderedDict[str, _CacheEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._data

    @property
    def capacity(self) -> int:
        return self._cap

    def refresh(self, window: Iterable[MediaItem]) -> None:
        """Make the cache hold exactly the image items of `window`."""
        wanted = [it for it in window if it.is_image]
        wanted_ids = {it.id for it in wanted}
        for key in [k for k in self._data if k not in wanted_ids]:
            del self._data[key]
        for item in wanted:
            if item.id in self._data:
                self._data.move_to_end(item.id)
                continue
            self._data[item.id] = self._materialize(item)
        while len(self._data) > self._cap:
            self._data.popitem(last=False)

    def get(self, item_id: str) -> tuple[Any | None, str | None]:
        """Return (image, error) for a cached item, or (None, None) if absent."""
        entry = self._data.get(item_id)
        if entry is None:
            return None, None
        return entry.image, entry.error

    def clear(self) -> None:
        self._data.clear()

    def _materialize(self, item: MediaItem) -> _CacheEntry:
        if self._loader is None:
            return _CacheEntry(item.id, None)
        try:
            return _CacheEntry(item.id, self._loader(item.path))
        except MediaUnavailable as ex:
            logger.warning("Media unavailable {}: {}", item.path, ex.reason)
            return _CacheEntry(item.id, None, ex.reason)
