"""Presentation session controller.

Composes navigation, timers, deletion and the exit protocol into one
session lifecycle. Every callback (gestures, timer ticks, async completions)
is expected on the same event loop thread, so no locking primitives are used.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from core.errors import EmptyCollectionError, SessionEnded
from core.models import Collection, DisplayFrame, ExitIntent, MediaItem, PresentationPhase
from core.services.deletion import DeletionEngine
from core.services.exit_protocol import ExitProtocol
from core.services.interfaces import (
    CollectionStore,
    ImageLoader,
    LockBridge,
    RemovalResult,
    SessionListener,
    TimerFactory,
)
from core.services.navigation import NavigationEngine
from core.services.precache import PrecacheCache
from core.services.timers import TimerCoordinator
from core.settings import PresentationSettings


class SessionController:
    """One full-screen presentation of a collection.

    The controller works on its own copy of `collection`; the caller's object
    is never mutated.
    """

    def __init__(
        self,
        collection: Collection,
        *,
        lock_bridge: LockBridge,
        timer_factory: TimerFactory,
        store: CollectionStore | None = None,
        settings: PresentationSettings | None = None,
        image_loader: ImageLoader | None = None,
        listener: SessionListener | None = None,
        initial_index: int = 0,
    ) -> None:
        if not collection.items:
            raise EmptyCollectionError(f"Collection {collection.id} has no items")
        self._collection = collection.sorted_by_order()
        self._settings = settings or PresentationSettings()
        self._bridge = lock_bridge
        self._store = store
        self._listener = listener or SessionListener()
        self._started = False
        self._closed = False
        self._background: set[asyncio.Task] = set()
        self._stepped = False

        self._nav = NavigationEngine(
            self._collection.items,
            cursor=initial_index,
            precache=PrecacheCache(image_loader),
        )
        self._deletion = DeletionEngine(
            self._collection,
            self._nav,
            store,
            confirm_removal=self._settings.confirm_removal,
            swipe_velocity_threshold=self._settings.swipe_velocity_threshold,
        )
        self._exit = ExitProtocol(
            self._collection,
            lock_bridge,
            store,
            on_phase_changed=self._listener.on_phase_changed,
            on_disposition_required=self._listener.on_disposition_required,
            on_save_failed=self._listener.on_save_failed,
            on_exit=self._teardown,
        )
        self._timers = TimerCoordinator(
            timer_factory,
            on_advance=self._auto_advance,
            on_auto_lock=self._auto_lock,
            is_alive=lambda: self.is_alive,
        )

    # Properties
    @property
    def collection(self) -> Collection:
        return self._collection

    @property
    def items(self) -> list[MediaItem]:
        return self._collection.items

    @property
    def settings(self) -> PresentationSettings:
        return self._settings

    @property
    def cursor(self) -> int:
        return self._nav.cursor

    @property
    def phase(self) -> PresentationPhase:
        return self._exit.phase

    @property
    def is_alive(self) -> bool:
        return self._started and not self._closed

    @property
    def navigation(self) -> NavigationEngine:
        return self._nav

    @property
    def timers(self) -> TimerCoordinator:
        return self._timers

    @property
    def exit_protocol(self) -> ExitProtocol:
        return self._exit

    @property
    def last_move_was_step(self) -> bool:
        """True when the cursor last moved by next/previous, False after a jump."""
        return self._stepped

    @property
    def counter_text(self) -> str | None:
        """Position label such as "2 of 5", or None when disabled."""
        if not self._settings.show_counter or self._closed:
            return None
        return f"{self.cursor + 1} of {len(self.items)}"

    # Lifecycle
    def start(self) -> None:
        """Enter secure mode and arm the timers."""
        if self._started:
            return
        self._started = True
        self._bridge.enter_secure_mode()
        self._timers.start(self._settings)
        self._stepped = False
        logger.info(
            "Presentation started: {} ({} items, ephemeral={})",
            self._collection.name,
            len(self.items),
            self._collection.ephemeral,
        )
        self._listener.on_cursor_changed(self.cursor)

    def close(self) -> None:
        """Tear down immediately, e.g. when the window is destroyed."""
        self._exit.force_exit()

    # Navigation
    def next(self) -> int:
        return self._step(1)

    def previous(self) -> int:
        return self._step(-1)

    def current_frame(self) -> DisplayFrame:
        """Return what the view should render for the current item."""
        item = self._nav.current
        if item.is_video:
            return DisplayFrame(item=item)
        image, error = self._nav.precache.get(item.id)
        return DisplayFrame(item=item, image=image, unavailable=error is not None, error=error)

    # Removal
    def on_vertical_swipe(self, velocity_y: float) -> RemovalResult | None:
        """Handle the end of a vertical drag; fast upward swipes remove."""
        if not self._settings.swipe_to_delete_enabled:
            return None
        if not self._deletion.is_delete_gesture(velocity_y):
            return None
        return self.request_remove_current()

    def request_remove_current(self) -> RemovalResult | None:
        """Remove the current item, or ask for confirmation first."""
        if not self._accepts_input():
            return None
        index = self.cursor
        result = self._guarded_removal(lambda: self._deletion.request(index))
        if result is None and self._deletion.pending_index is not None:
            self._listener.on_removal_confirmation_requested(self.items[index])
        return result

    def resolve_removal(self, confirmed: bool) -> RemovalResult | None:
        """Answer a removal confirmation."""
        if not self._accepts_input():
            self._deletion.resolve(False)
            return None
        return self._guarded_removal(lambda: self._deletion.resolve(confirmed))

    # Exit
    async def request_exit(self, intent: ExitIntent = ExitIntent.EXIT_CONTROL) -> PresentationPhase:
        if not self.is_alive:
            return self.phase
        return await self._exit.request_exit(intent)

    async def choose_save(self, name: str) -> PresentationPhase:
        return await self._exit.choose_save(name)

    async def retry_save(self, name: str | None = None) -> PresentationPhase:
        return await self._exit.retry_save(name)

    def choose_discard(self) -> PresentationPhase:
        return self._exit.choose_discard()

    def choose_cancel(self) -> PresentationPhase:
        phase = self._exit.choose_cancel()
        self._stepped = False
        self._listener.on_cursor_changed(self.cursor)
        return phase

    # Internal helpers
    def _accepts_input(self) -> bool:
        return self.is_alive and self.phase is PresentationPhase.ACTIVE

    def _step(self, direction: int) -> int:
        if not self._accepts_input():
            return self.cursor
        cursor = self._nav.advance(direction)
        self._stepped = True
        self._listener.on_cursor_changed(cursor)
        return cursor

    def _guarded_removal(self, action) -> RemovalResult | None:
        try:
            result = action()
        except SessionEnded:
            logger.info("All items removed; ending presentation")
            self._listener.on_feedback("All items removed from collection")
            self._exit.force_exit()
            return None
        if result is None:
            return None
        self._stepped = False
        if result.synced:
            self._listener.on_feedback("Item removed from collection")
        else:
            self._listener.on_feedback("Item removed, but the saved collection was not updated")
        self._listener.on_cursor_changed(self.cursor)
        return result

    def _auto_advance(self) -> None:
        if self.phase is PresentationPhase.ACTIVE:
            self._step(1)

    def _auto_lock(self) -> None:
        if self.phase is not PresentationPhase.ACTIVE:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Auto-lock elapsed without a running event loop")
            return
        task = loop.create_task(self._lock_quietly())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _lock_quietly(self) -> None:
        try:
            confirmed = await self._bridge.lock()
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.warning("Auto-lock raised {}: {}", type(ex).__name__, ex)
            return
        if not confirmed:
            logger.warning("Auto-lock not confirmed by the platform")

    def _teardown(self, saved_collection_id: str | None) -> None:
        if self._closed:
            return
        self._closed = True
        self._timers.cancel()
        self._nav.clear()
        self._deletion.resolve(False)
        try:
            self._bridge.exit_secure_mode()
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.warning("Leaving secure mode failed: {}", ex)
        logger.info("Presentation closed (saved={})", saved_collection_id)
        self._listener.on_session_closed(saved_collection_id)
