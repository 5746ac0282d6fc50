"""Removal of items from a running session.

Removing keeps the dense 0..n-1 ordering of the remaining items and keeps
the cursor on a valid neighbour. Saved collections mirror every removal to
the store; ephemeral ones stay in memory until they are saved.
"""

from __future__ import annotations

from loguru import logger

from core.errors import PersistenceError, SessionEnded
from core.models import Collection, reindex
from core.services.interfaces import CollectionStore, RemovalResult
from core.services.navigation import NavigationEngine
from core.settings import DEFAULT_SWIPE_VELOCITY_THRESHOLD


class DeletionEngine:
    """Removes items and restores dense ordering."""

    def __init__(
        self,
        collection: Collection,
        navigation: NavigationEngine,
        store: CollectionStore | None = None,
        *,
        confirm_removal: bool = False,
        swipe_velocity_threshold: float = DEFAULT_SWIPE_VELOCITY_THRESHOLD,
    ) -> None:
        """Create a DeletionEngine.

        Args:
            collection: The session's own collection copy; its item list is
                the one `navigation` walks over.
            navigation: Cursor owner to re-place after a removal.
            store: Store used to mirror removals of saved collections.
            confirm_removal: Gate removals behind `resolve(True)`.
            swipe_velocity_threshold: Minimum upward speed (px/s) that counts
                as a delete swipe.
        """
        self._collection = collection
        self._nav = navigation
        self._store = store
        self.confirm_removal = confirm_removal
        self.swipe_velocity_threshold = float(swipe_velocity_threshold)
        self._pending: int | None = None

    @property
    def pending_index(self) -> int | None:
        return self._pending

    def is_delete_gesture(self, velocity_y: float) -> bool:
        """True for an upward swipe faster than the threshold.

        `velocity_y` follows screen coordinates, so upward is negative.
        """
        return velocity_y < -self.swipe_velocity_threshold

    def request(self, index: int) -> RemovalResult | None:
        """Remove `index`, or park it until `resolve` when confirmation is on."""
        if self.confirm_removal:
            self._pending = index
            logger.debug("Removal of index {} awaits confirmation", index)
            return None
        return self.remove(index)

    def resolve(self, confirmed: bool) -> RemovalResult | None:
        """Finish a parked removal; declined or missing requests do nothing."""
        index, self._pending = self._pending, None
        if index is None or not confirmed:
            return None
        return self.remove(index)

    def remove(self, index: int) -> RemovalResult:
        """Remove the item at `index`.

        Raises:
            SessionEnded: when the removed item was the last one.
            IndexError: when `index` is out of range.
        """
        items = self._collection.items
        n = len(items)
        if not 0 <= index < n:
            raise IndexError(f"index {index} out of range for {n} items")

        removed = items.pop(index)
        items[:] = reindex(items)
        synced = self._sync()
        logger.info("Removed item {} at index {} ({} left)", removed.id, index, len(items))

        if not items:
            raise SessionEnded(f"Last item {removed.id} removed")

        cursor = min(index, n - 2)
        self._nav.jump_to(cursor)
        return RemovalResult(removed=removed, cursor=cursor, remaining=len(items), synced=synced)

    def _sync(self) -> bool:
        if self._collection.ephemeral or self._store is None:
            return True
        try:
            self._store.replace_items(self._collection.id, list(self._collection.items))
            return True
        except PersistenceError as ex:
            logger.error("Reflect removal to store failed for {}: {}", self._collection.id, ex)
            return False
