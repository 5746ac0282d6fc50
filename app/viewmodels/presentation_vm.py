"""ViewModel exposing a presentation session to Qt views."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from PySide6.QtCore import QObject, Signal
from loguru import logger

from core.models import Collection, DisplayFrame, ExitIntent, MediaItem, PresentationPhase
from core.services.interfaces import (
    CollectionStore,
    ImageLoader,
    LockBridge,
    SessionListener,
    TimerFactory,
)
from core.services.session import SessionController
from core.settings import PresentationSettings
from infrastructure.qt_timer import qt_timer_factory


class _SignalListener(SessionListener):
    """Forwards controller notifications to the view-model's signals."""

    def __init__(self, vm: PresentationVM) -> None:
        self._vm = vm

    def on_cursor_changed(self, index: int) -> None:
        self._vm.cursorChanged.emit(index)

    def on_phase_changed(self, phase: PresentationPhase) -> None:
        self._vm.phaseChanged.emit(phase.value)

    def on_feedback(self, message: str) -> None:
        self._vm.feedback.emit(message)

    def on_removal_confirmation_requested(self, item: MediaItem) -> None:
        self._vm.removalConfirmationRequested.emit(item)

    def on_disposition_required(self) -> None:
        self._vm.dispositionRequired.emit()

    def on_save_failed(self, error: str) -> None:
        self._vm.saveFailed.emit(error)

    def on_session_closed(self, saved_collection_id: str | None) -> None:
        self._vm.sessionClosed.emit(saved_collection_id or "")


class PresentationVM(QObject):
    """Qt-facing wrapper around `SessionController`.

    Async operations are scheduled on the running asyncio loop (QtAsyncio in
    the application) so Qt slots can fire them without awaiting.
    """

    cursorChanged = Signal(int)
    phaseChanged = Signal(str)
    feedback = Signal(str)
    removalConfirmationRequested = Signal(object)
    dispositionRequired = Signal()
    saveFailed = Signal(str)
    sessionClosed = Signal(str)

    def __init__(
        self,
        collection: Collection,
        *,
        lock_bridge: LockBridge,
        store: CollectionStore | None = None,
        settings: PresentationSettings | None = None,
        image_loader: ImageLoader | None = None,
        timer_factory: TimerFactory | None = None,
        initial_index: int = 0,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._tasks: set[asyncio.Future] = set()
        self._controller = SessionController(
            collection,
            lock_bridge=lock_bridge,
            store=store,
            settings=settings,
            image_loader=image_loader,
            timer_factory=timer_factory or qt_timer_factory(self),
            listener=_SignalListener(self),
            initial_index=initial_index,
        )

    @property
    def controller(self) -> SessionController:
        return self._controller

    @property
    def settings(self) -> PresentationSettings:
        return self._controller.settings

    @property
    def phase(self) -> PresentationPhase:
        return self._controller.phase

    @property
    def counter_text(self) -> str | None:
        return self._controller.counter_text

    @property
    def is_ephemeral(self) -> bool:
        return self._controller.collection.ephemeral

    def start(self) -> None:
        self._controller.start()

    def close(self) -> None:
        self._controller.close()

    def current_frame(self) -> DisplayFrame:
        return self._controller.current_frame()

    def go_next(self) -> None:
        self._controller.next()

    def go_previous(self) -> None:
        self._controller.previous()

    def vertical_swipe(self, velocity_y: float) -> None:
        self._controller.on_vertical_swipe(velocity_y)

    def remove_current(self) -> None:
        self._controller.request_remove_current()

    def resolve_removal(self, confirmed: bool) -> None:
        self._controller.resolve_removal(confirmed)

    def request_exit(self, intent: ExitIntent) -> None:
        self._spawn(self._controller.request_exit(intent))

    def save(self, name: str) -> None:
        self._spawn(self._controller.choose_save(name))

    def retry_save(self) -> None:
        self._spawn(self._controller.retry_save())

    def discard(self) -> None:
        self._controller.choose_discard()

    def cancel_exit(self) -> None:
        self._controller.choose_cancel()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        future = asyncio.ensure_future(coro)
        self._tasks.add(future)
        future.add_done_callback(self._on_task_done)

    def _on_task_done(self, future: asyncio.Future) -> None:
        self._tasks.discard(future)
        if future.cancelled():
            return
        ex = future.exception()
        if ex is not None:
            logger.error("Session task failed: {}", ex)
