"""Shared test fixtures and fakes."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
import os
import string

import pytest

from core.errors import CollectionNotFoundError, PersistenceError
from core.models import Collection, MediaItem, MediaKind, PresentationPhase, reindex
from core.services.interfaces import SessionListener

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

T0 = datetime(2024, 1, 1, 12, 0, 0)


def make_items(count: int, video_at: set[int] | None = None) -> list[MediaItem]:
    """Items named A, B, C... with dense orders; `video_at` marks videos."""
    video_at = video_at or set()
    return [
        MediaItem(
            id=string.ascii_uppercase[i],
            path=f"/media/{string.ascii_uppercase[i]}.{'mp4' if i in video_at else 'jpg'}",
            added_at=T0,
            order=i,
            kind=MediaKind.VIDEO if i in video_at else MediaKind.IMAGE,
        )
        for i in range(count)
    ]


def make_collection(count: int = 3, ephemeral: bool = False, **kwargs) -> Collection:
    return Collection(
        id="ephemeral-1" if ephemeral else "col-1",
        name="Shared" if ephemeral else "Holiday",
        created_at=T0,
        updated_at=T0,
        items=make_items(count, **kwargs),
        ephemeral=ephemeral,
    )


class FakeTimer:
    """Timer driven by `ManualClock.advance`."""

    def __init__(self, clock: ManualClock, callback, single_shot: bool) -> None:
        self._clock = clock
        self.callback = callback
        self.single_shot = single_shot
        self.interval_ms = 0
        self.due_ms: int | None = None
        self.start_calls = 0
        self.stop_calls = 0

    def start(self, interval_ms: int) -> None:
        self.start_calls += 1
        self.interval_ms = int(interval_ms)
        self.due_ms = self._clock.now_ms + self.interval_ms

    def stop(self) -> None:
        self.stop_calls += 1
        self.due_ms = None

    def is_active(self) -> bool:
        return self.due_ms is not None


class ManualClock:
    """Deterministic TimerFactory plus a clock to drive it."""

    def __init__(self) -> None:
        self.now_ms = 0
        self.timers: list[FakeTimer] = []

    def factory(self, callback, single_shot: bool) -> FakeTimer:
        timer = FakeTimer(self, callback, single_shot)
        self.timers.append(timer)
        return timer

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [t for t in self.timers if t.due_ms is not None and t.due_ms <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due_ms)
            self.now_ms = timer.due_ms
            if timer.single_shot:
                timer.due_ms = None
            else:
                timer.due_ms += timer.interval_ms
            timer.callback()
        self.now_ms = target


@dataclass
class FakeLockBridge:
    """LockBridge double recording every call."""

    result: bool = True
    error: Exception | None = None
    gate: asyncio.Event | None = None
    events: list[str] = field(default_factory=list)
    lock_calls: int = 0
    enter_calls: int = 0
    exit_calls: int = 0
    capable: bool = True

    def enter_secure_mode(self) -> None:
        self.enter_calls += 1
        self.events.append("enter_secure_mode")

    def exit_secure_mode(self) -> None:
        self.exit_calls += 1
        self.events.append("exit_secure_mode")

    async def lock(self) -> bool:
        self.lock_calls += 1
        self.events.append("lock:start")
        if self.gate is not None:
            await self.gate.wait()
        self.events.append("lock:done")
        if self.error is not None:
            raise self.error
        return self.result

    def is_auto_lock_capable(self) -> bool:
        return self.capable

    def request_auto_lock_capability(self) -> None:
        self.events.append("request_capability")


@dataclass
class InMemoryCollectionStore:
    """CollectionStore double; `fail_persist` counts down failing calls."""

    collections: dict[str, Collection] = field(default_factory=dict)
    persist_calls: list[tuple[str, list[MediaItem]]] = field(default_factory=list)
    replace_calls: list[tuple[str, list[MediaItem]]] = field(default_factory=list)
    fail_persist: int = 0
    fail_replace: bool = False

    def persist(self, name: str, items: list[MediaItem]) -> str:
        self.persist_calls.append((name, list(items)))
        if self.fail_persist > 0:
            self.fail_persist -= 1
            raise PersistenceError("disk full")
        collection_id = f"saved-{len(self.collections) + 1}"
        self.collections[collection_id] = Collection(
            id=collection_id,
            name=name,
            created_at=T0,
            updated_at=T0,
            items=reindex(list(items)),
        )
        return collection_id

    def remove(self, collection_id: str) -> None:
        if self.collections.pop(collection_id, None) is None:
            raise CollectionNotFoundError(collection_id)

    def load(self, collection_id: str) -> Collection:
        try:
            return self.collections[collection_id].copy()
        except KeyError as ex:
            raise CollectionNotFoundError(collection_id) from ex

    def list_all(self) -> list[Collection]:
        return sorted(self.collections.values(), key=lambda c: c.updated_at, reverse=True)

    def replace_items(self, collection_id: str, items: list[MediaItem]) -> None:
        self.replace_calls.append((collection_id, list(items)))
        if self.fail_replace:
            raise PersistenceError("read-only database")


class RecordingListener(SessionListener):
    """Collects session notifications in order."""

    def __init__(self, events: list[str] | None = None) -> None:
        self.events = events if events is not None else []
        self.cursors: list[int] = []
        self.phases: list[PresentationPhase] = []
        self.feedback: list[str] = []
        self.confirmations: list[MediaItem] = []
        self.save_errors: list[str] = []
        self.closed: list[str | None] = []

    def on_cursor_changed(self, index: int) -> None:
        self.cursors.append(index)

    def on_phase_changed(self, phase: PresentationPhase) -> None:
        self.phases.append(phase)
        self.events.append(f"phase:{phase.value}")

    def on_feedback(self, message: str) -> None:
        self.feedback.append(message)

    def on_removal_confirmation_requested(self, item: MediaItem) -> None:
        self.confirmations.append(item)

    def on_disposition_required(self) -> None:
        self.events.append("disposition")

    def on_save_failed(self, error: str) -> None:
        self.save_errors.append(error)

    def on_session_closed(self, saved_collection_id: str | None) -> None:
        self.closed.append(saved_collection_id)
        self.events.append("closed")


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def bridge() -> FakeLockBridge:
    return FakeLockBridge()


@pytest.fixture
def store() -> InMemoryCollectionStore:
    return InMemoryCollectionStore()


@pytest.fixture
def listener(bridge: FakeLockBridge) -> RecordingListener:
    return RecordingListener(bridge.events)
