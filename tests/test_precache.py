from core.errors import MediaUnavailable
from core.services.precache import PrecacheCache
from tests.conftest import make_items


def test_only_images_are_materialized():
    calls: list[str] = []
    items = make_items(3, video_at={1})
    cache = PrecacheCache(lambda p: calls.append(p) or p)

    cache.refresh(items)

    assert items[1].id not in cache
    assert len(cache) == 2
    assert items[1].path not in calls


def test_refresh_evicts_items_outside_window():
    items = make_items(6)
    cache = PrecacheCache(lambda p: p)

    cache.refresh(items[0:3])
    cache.refresh(items[3:6])

    assert len(cache) == 3
    assert all(it.id in cache for it in items[3:6])
    assert all(it.id not in cache for it in items[0:3])


def test_cached_entries_are_not_reloaded():
    calls: list[str] = []
    items = make_items(3)
    cache = PrecacheCache(lambda p: calls.append(p) or p)

    cache.refresh(items)
    cache.refresh(items)

    assert len(calls) == 3


def test_capacity_is_a_hard_bound():
    cache = PrecacheCache(lambda p: p, capacity=2)
    cache.refresh(make_items(5))
    assert len(cache) == 2


def test_unavailable_media_is_remembered_as_error():
    items = make_items(1)

    def loader(path: str):
        raise MediaUnavailable(path, "file not found")

    cache = PrecacheCache(loader)
    cache.refresh(items)

    assert cache.get(items[0].id) == (None, "file not found")


def test_get_missing_and_clear():
    items = make_items(2)
    cache = PrecacheCache(lambda p: "img")
    cache.refresh(items)

    assert cache.get("missing") == (None, None)
    assert cache.get(items[0].id) == ("img", None)
    cache.clear()
    assert len(cache) == 0
