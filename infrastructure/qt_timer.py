"""QTimer-backed timers for the session core."""

from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QObject, QTimer


class QtTimer:
    """TimerHandle running on the Qt event loop of the creating thread."""

    def __init__(
        self, callback: Callable[[], None], single_shot: bool, parent: QObject | None = None
    ) -> None:
        self._timer = QTimer(parent)
        self._timer.setSingleShot(single_shot)
        self._timer.timeout.connect(callback)

    def start(self, interval_ms: int) -> None:
        self._timer.start(int(interval_ms))

    def stop(self) -> None:
        self._timer.stop()

    def is_active(self) -> bool:
        return self._timer.isActive()


def qt_timer_factory(parent: QObject | None = None) -> Callable[[Callable[[], None], bool], QtTimer]:
    """Return a TimerFactory whose timers are children of `parent`."""

    def _create(callback: Callable[[], None], single_shot: bool) -> QtTimer:
        return QtTimer(callback, single_shot, parent)

    return _create
