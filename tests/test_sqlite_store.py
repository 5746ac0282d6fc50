from datetime import datetime, timedelta

import pytest

from core.errors import CollectionNotFoundError
from core.models import MediaKind
from infrastructure import sqlite_store
from infrastructure.sqlite_store import SqliteCollectionStore
from tests.conftest import make_items


@pytest.fixture
def db(tmp_path):
    store = SqliteCollectionStore(tmp_path / "data" / "collections.db")
    yield store
    store.close()


def test_persist_and_load_keeps_items_in_order(db):
    items = make_items(3, video_at={2})

    collection_id = db.persist("Trip", items)
    loaded = db.load(collection_id)

    assert loaded.name == "Trip"
    assert not loaded.ephemeral
    assert [it.id for it in loaded.items] == ["A", "B", "C"]
    assert [it.order for it in loaded.items] == [0, 1, 2]
    assert loaded.items[2].kind is MediaKind.VIDEO
    assert loaded.items[0].added_at == items[0].added_at


def test_persist_reindexes_sparse_orders(db):
    items = [it.with_order(it.order * 10) for it in make_items(3)]

    loaded = db.load(db.persist("Sparse", items))

    assert [it.order for it in loaded.items] == [0, 1, 2]


def test_replace_items_after_removal(db):
    collection_id = db.persist("Trip", make_items(3))
    remaining = db.load(collection_id).items
    del remaining[1]

    db.replace_items(collection_id, remaining)

    loaded = db.load(collection_id)
    assert [it.id for it in loaded.items] == ["A", "C"]
    assert [it.order for it in loaded.items] == [0, 1]


def test_add_items_continues_order(db):
    items = make_items(4)
    collection_id = db.persist("Trip", items[:2])

    db.add_items(collection_id, [it.with_order(0) for it in items[2:]])

    assert [it.order for it in db.load(collection_id).items] == [0, 1, 2, 3]


def test_list_all_most_recent_first(db, monkeypatch):
    t0 = datetime(2024, 5, 1, 9, 0)
    monkeypatch.setattr(sqlite_store, "_now", lambda: t0)
    first = db.persist("First", make_items(1))
    monkeypatch.setattr(sqlite_store, "_now", lambda: t0 + timedelta(hours=1))
    second = db.persist("Second", make_items(1))
    assert [c.id for c in db.list_all()] == [second, first]

    monkeypatch.setattr(sqlite_store, "_now", lambda: t0 + timedelta(hours=2))
    db.rename(first, "Renamed")

    listed = db.list_all()
    assert [c.id for c in listed] == [first, second]
    assert listed[0].name == "Renamed"


def test_remove_and_missing_ids(db):
    collection_id = db.persist("Trip", make_items(2))
    db.remove(collection_id)

    with pytest.raises(CollectionNotFoundError):
        db.load(collection_id)
    with pytest.raises(CollectionNotFoundError):
        db.remove(collection_id)
    with pytest.raises(CollectionNotFoundError):
        db.replace_items(collection_id, [])


def test_in_memory_database():
    store = SqliteCollectionStore(":memory:")
    collection_id = store.persist("Memory", make_items(1))
    assert store.load(collection_id).item_count == 1
    store.close()
