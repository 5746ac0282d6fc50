"""Ownership of the auto-advance and auto-lock timers of one session."""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from core.services.interfaces import TimerFactory, TimerHandle
from core.settings import PresentationSettings


class TimerCoordinator:
    """Starts, guards and releases the two session timers.

    Auto-lock is a one-shot timer that is deliberately never reset by user
    interaction nor triggered by the application losing focus: locking the
    workstation itself deactivates the window, which would otherwise
    re-trigger a lock.
    """

    def __init__(
        self,
        timer_factory: TimerFactory,
        *,
        on_advance: Callable[[], None],
        on_auto_lock: Callable[[], None],
        is_alive: Callable[[], bool],
    ) -> None:
        self._factory = timer_factory
        self._on_advance = on_advance
        self._on_auto_lock = on_auto_lock
        self._is_alive = is_alive
        self._advance_timer: TimerHandle | None = None
        self._lock_timer: TimerHandle | None = None
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def auto_advance_active(self) -> bool:
        return self._advance_timer is not None and self._advance_timer.is_active()

    @property
    def auto_lock_active(self) -> bool:
        return self._lock_timer is not None and self._lock_timer.is_active()

    def start(self, settings: PresentationSettings) -> None:
        """Arm the timers enabled in `settings`."""
        if self._released:
            raise RuntimeError("timers were already released")
        if settings.auto_advance_enabled and self._advance_timer is None:
            self._advance_timer = self._factory(self._advance_tick, False)
            self._advance_timer.start(settings.auto_advance_interval.milliseconds)
            logger.info("Auto-advance every {}s", int(settings.auto_advance_interval))
        if settings.auto_lock_enabled and self._lock_timer is None:
            self._lock_timer = self._factory(self._auto_lock_fired, True)
            self._lock_timer.start(settings.auto_lock_minutes.milliseconds)
            logger.info("Auto-lock in {} min", int(settings.auto_lock_minutes))

    def cancel(self) -> None:
        """Stop both timers. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        for timer in (self._advance_timer, self._lock_timer):
            if timer is not None:
                timer.stop()
        self._advance_timer = None
        self._lock_timer = None
        logger.debug("Session timers released")

    def _advance_tick(self) -> None:
        if self._released or not self._is_alive():
            return
        self._on_advance()

    def _auto_lock_fired(self) -> None:
        if self._released or not self._is_alive():
            return
        logger.info("Auto-lock timer elapsed")
        self._on_auto_lock()
