import asyncio

import pytest

from core.errors import EmptyCollectionError, MediaUnavailable
from core.models import ExitIntent, PresentationPhase
from core.services.session import SessionController
from core.settings import AutoAdvanceInterval, AutoLockDuration, PresentationSettings
from tests.conftest import FakeLockBridge, make_collection


def _session(clock, bridge, listener, store=None, count=3, ephemeral=False, **kwargs):
    settings = kwargs.pop("settings", PresentationSettings())
    session = SessionController(
        make_collection(count, ephemeral=ephemeral),
        lock_bridge=bridge,
        timer_factory=clock.factory,
        store=store,
        settings=settings,
        listener=listener,
        **kwargs,
    )
    session.start()
    return session


def test_empty_collection_is_refused(clock, bridge):
    collection = make_collection(0)
    with pytest.raises(EmptyCollectionError):
        SessionController(collection, lock_bridge=bridge, timer_factory=clock.factory)


def test_start_enters_secure_mode_and_reports_cursor(clock, bridge, listener):
    session = _session(clock, bridge, listener, initial_index=1)

    assert bridge.enter_calls == 1
    assert listener.cursors == [1]
    assert session.is_alive
    assert session.phase is PresentationPhase.ACTIVE


def test_caller_collection_is_not_mutated(clock, bridge, listener):
    collection = make_collection(3)
    session = SessionController(
        collection, lock_bridge=bridge, timer_factory=clock.factory, listener=listener
    )
    session.start()

    session.request_remove_current()

    assert collection.item_count == 3
    assert len(session.items) == 2


def test_next_and_previous_wrap(clock, bridge, listener):
    session = _session(clock, bridge, listener)

    assert session.previous() == 2
    assert session.next() == 0
    assert session.next() == 1


def test_auto_advance_steps_the_cursor(clock, bridge, listener):
    settings = PresentationSettings(
        auto_advance_enabled=True, auto_advance_interval=AutoAdvanceInterval.SECONDS_5
    )
    session = _session(clock, bridge, listener, count=10, settings=settings)

    clock.advance(20_000)

    assert session.cursor == 4


def test_swipe_up_removes_current_item(clock, bridge, listener, store):
    session = _session(clock, bridge, listener, store=store, initial_index=1)

    result = session.on_vertical_swipe(-900)

    assert result.removed.id == "B"
    assert [it.id for it in session.items] == ["A", "C"]
    assert session.cursor == 1
    assert listener.feedback == ["Item removed from collection"]
    assert listener.cursors[-1] == 1


def test_slow_or_disabled_swipe_does_nothing(clock, bridge, listener):
    session = _session(clock, bridge, listener)
    assert session.on_vertical_swipe(-200) is None

    disabled = _session(
        clock, bridge, listener, settings=PresentationSettings(swipe_to_delete_enabled=False)
    )
    assert disabled.on_vertical_swipe(-5000) is None
    assert len(disabled.items) == 3


def test_removal_confirmation_round_trip(clock, bridge, listener):
    settings = PresentationSettings(confirm_removal=True)
    session = _session(clock, bridge, listener, settings=settings)

    assert session.request_remove_current() is None
    assert [it.id for it in listener.confirmations] == ["A"]
    assert len(session.items) == 3

    result = session.resolve_removal(True)
    assert result.removed.id == "A"
    assert len(session.items) == 2


def test_unsynced_removal_is_reported(clock, bridge, listener, store):
    store.fail_replace = True
    session = _session(clock, bridge, listener, store=store)

    session.request_remove_current()

    assert listener.feedback == ["Item removed, but the saved collection was not updated"]


def test_removing_last_item_closes_without_lock(clock, bridge, listener, store):
    settings = PresentationSettings(auto_advance_enabled=True, auto_lock_enabled=True)
    session = _session(clock, bridge, listener, store=store, count=1, settings=settings)

    assert session.request_remove_current() is None

    assert store.replace_calls == [("col-1", [])]
    assert listener.feedback == ["All items removed from collection"]
    assert listener.closed == [None]
    assert bridge.lock_calls == 0
    assert bridge.exit_calls == 1
    assert [t.stop_calls for t in clock.timers] == [1, 1]
    assert not session.is_alive


def test_exit_saved_collection_tears_down_once(clock, bridge, listener, store):
    settings = PresentationSettings(auto_advance_enabled=True, auto_lock_enabled=True)
    session = _session(clock, bridge, listener, store=store, settings=settings)

    phase = asyncio.run(session.request_exit(ExitIntent.EXIT_CONTROL))
    session.close()

    assert phase is PresentationPhase.EXITING
    assert bridge.lock_calls == 1
    assert bridge.exit_calls == 1
    assert listener.closed == [None]
    assert [t.stop_calls for t in clock.timers] == [1, 1]
    assert len(session.navigation.precache) == 0


def test_ephemeral_save_scenario(clock, bridge, listener, store):
    session = _session(clock, bridge, listener, store=store, ephemeral=True)

    async def scenario():
        await session.request_exit(ExitIntent.BACK)
        assert session.phase is PresentationPhase.AWAITING_DISPOSITION
        return await session.choose_save("Trip")

    assert asyncio.run(scenario()) is PresentationPhase.EXITING
    assert bridge.events.index("lock:done") < bridge.events.index("disposition")
    assert [name for name, _ in store.persist_calls] == ["Trip"]
    assert store.load("saved-1").item_count == 3
    assert listener.closed == ["saved-1"]


def test_cancel_resumes_with_same_cursor_and_items(clock, bridge, listener):
    settings = PresentationSettings(
        auto_advance_enabled=True, auto_advance_interval=AutoAdvanceInterval.SECONDS_3
    )
    session = _session(clock, bridge, listener, ephemeral=True, settings=settings, initial_index=2)

    asyncio.run(session.request_exit(ExitIntent.EXIT_CONTROL))
    clock.advance(9_000)
    assert session.next() == 2

    assert session.choose_cancel() is PresentationPhase.ACTIVE
    assert session.cursor == 2
    assert len(session.items) == 3
    assert session.is_alive
    assert bridge.exit_calls == 0


def test_auto_lock_locks_without_ending_session(clock, bridge, listener):
    settings = PresentationSettings(
        auto_lock_enabled=True, auto_lock_minutes=AutoLockDuration.MINUTES_1
    )

    async def scenario():
        session = _session(clock, bridge, listener, settings=settings)
        clock.advance(60_000)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        return session

    session = asyncio.run(scenario())

    assert bridge.lock_calls == 1
    assert session.phase is PresentationPhase.ACTIVE
    assert session.is_alive


def test_current_frame_reports_unavailable_media(clock, bridge, listener):
    def loader(path):
        raise MediaUnavailable(path, "file not found")

    session = _session(clock, bridge, listener, image_loader=loader)
    frame = session.current_frame()

    assert frame.unavailable
    assert frame.error == "file not found"
    assert frame.image is None


def test_current_frame_for_video_has_no_image(clock, bridge, listener):
    session = SessionController(
        make_collection(2, video_at={0}),
        lock_bridge=bridge,
        timer_factory=clock.factory,
        image_loader=lambda p: "img",
        listener=listener,
    )
    session.start()

    frame = session.current_frame()
    assert frame.item.is_video
    assert frame.image is None
    assert not frame.unavailable
    assert session.next() == 1
    assert session.current_frame().image == "img"


def test_counter_text(clock, bridge, listener):
    session = _session(
        clock, bridge, listener, settings=PresentationSettings(show_counter=True)
    )
    session.next()
    assert session.counter_text == "2 of 3"

    hidden = _session(clock, bridge, listener)
    assert hidden.counter_text is None


def test_navigation_ignored_after_close(clock, bridge, listener):
    session = _session(clock, bridge, listener)
    session.close()

    assert session.next() == 0
    assert session.request_remove_current() is None
    assert asyncio.run(session.request_exit()) is PresentationPhase.EXITING
    assert bridge.lock_calls == 0


def test_save_after_removal_persists_final_order(clock, bridge, listener, store):
    session = _session(clock, bridge, listener, store=store, ephemeral=True, initial_index=1)
    session.request_remove_current()

    async def scenario():
        await session.request_exit(ExitIntent.EXIT_CONTROL)
        return await session.choose_save("Trip")

    assert asyncio.run(scenario()) is PresentationPhase.EXITING
    assert len(store.persist_calls) == 1
    name, items = store.persist_calls[0]
    assert name == "Trip"
    assert [(it.id, it.order) for it in items] == [("A", 0), ("C", 1)]


def test_discard_never_persists(clock, bridge, listener, store):
    session = _session(clock, bridge, listener, store=store, ephemeral=True)

    asyncio.run(session.request_exit(ExitIntent.EXIT_CONTROL))
    assert session.choose_discard() is PresentationPhase.EXITING

    assert store.persist_calls == []
    assert listener.closed == [None]


@pytest.mark.parametrize(
    "bridge_kwargs", [{"result": True}, {"result": False}, {"error": OSError("no session")}]
)
def test_cancel_keeps_cursor_whatever_the_lock_result(clock, listener, store, bridge_kwargs):
    bridge = FakeLockBridge(**bridge_kwargs)
    session = _session(clock, bridge, listener, store=store, ephemeral=True, initial_index=2)

    phase = asyncio.run(session.request_exit(ExitIntent.BACK))
    assert phase is PresentationPhase.AWAITING_DISPOSITION
    assert session.choose_cancel() is PresentationPhase.ACTIVE

    assert session.cursor == 2
    assert [it.id for it in session.items] == ["A", "B", "C"]
    assert store.persist_calls == []
    assert bridge.lock_calls == 1
    assert session.is_alive


def test_last_move_was_step_distinguishes_jumps(clock, bridge, listener):
    session = _session(clock, bridge, listener)
    assert not session.last_move_was_step

    session.next()
    assert session.last_move_was_step

    session.request_remove_current()
    assert not session.last_move_was_step
