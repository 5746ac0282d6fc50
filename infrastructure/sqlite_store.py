"""SQLite persistence for collections and their items.

All `sqlite3.Error`s are converted to `PersistenceError` at this boundary.
Items are always written with dense orders and read back sorted by order.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
import sqlite3
import uuid

from loguru import logger

from core.errors import CollectionNotFoundError, PersistenceError
from core.models import Collection, MediaItem, MediaKind, reindex

SCHEMA_VERSION = 1

_SCHEMA = """
CREATE TABLE IF NOT EXISTS collections (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS items (
    id TEXT NOT NULL,
    collection_id TEXT NOT NULL,
    path TEXT NOT NULL,
    thumbnail_path TEXT,
    added_at TEXT NOT NULL,
    item_order INTEGER NOT NULL,
    kind TEXT NOT NULL DEFAULT 'image',
    PRIMARY KEY (collection_id, id),
    FOREIGN KEY (collection_id) REFERENCES collections (id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_items_collection ON items(collection_id);
"""


def _now() -> datetime:
    return datetime.now()


class SqliteCollectionStore:
    """CollectionStore backed by a single SQLite file."""

    def __init__(self, db_path: str | Path) -> None:
        self._path = str(db_path)
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = sqlite3.connect(self._path)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            self._conn.executescript(_SCHEMA)
            self._conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        except sqlite3.Error as ex:
            raise PersistenceError(f"Cannot open collection store {self._path}: {ex}") from ex
        logger.info("Collection store opened: {}", self._path)

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            with self._conn:
                yield self._conn
        except sqlite3.Error as ex:
            logger.error("SQLite error in {}: {}", self._path, ex)
            raise PersistenceError(str(ex)) from ex

    # Public API
    def persist(self, name: str, items: list[MediaItem]) -> str:
        """Store `items` as a new collection named `name` and return its id."""
        collection_id = str(uuid.uuid4())
        now = _now().isoformat()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO collections (id, name, created_at, updated_at) VALUES (?, ?, ?, ?)",
                (collection_id, name, now, now),
            )
            self._insert_items(conn, collection_id, reindex(list(items)))
        logger.info("Persisted collection {!r} ({}, {} items)", name, collection_id, len(items))
        return collection_id

    def remove(self, collection_id: str) -> None:
        with self._transaction() as conn:
            cur = conn.execute("DELETE FROM collections WHERE id = ?", (collection_id,))
            if cur.rowcount == 0:
                raise CollectionNotFoundError(collection_id)
            conn.execute("DELETE FROM items WHERE collection_id = ?", (collection_id,))

    def load(self, collection_id: str) -> Collection:
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT * FROM collections WHERE id = ?", (collection_id,)
            ).fetchone()
            if row is None:
                raise CollectionNotFoundError(collection_id)
            return self._to_collection(conn, row)

    def list_all(self) -> list[Collection]:
        """Return all collections, most recently updated first."""
        with self._transaction() as conn:
            rows = conn.execute("SELECT * FROM collections ORDER BY updated_at DESC").fetchall()
            return [self._to_collection(conn, row) for row in rows]

    def replace_items(self, collection_id: str, items: list[MediaItem]) -> None:
        """Overwrite the items of `collection_id` and bump its update time."""
        with self._transaction() as conn:
            self._touch(conn, collection_id)
            conn.execute("DELETE FROM items WHERE collection_id = ?", (collection_id,))
            self._insert_items(conn, collection_id, reindex(list(items)))

    def add_items(self, collection_id: str, items: list[MediaItem]) -> None:
        """Append `items` after the existing ones, continuing the order."""
        with self._transaction() as conn:
            self._touch(conn, collection_id)
            row = conn.execute(
                "SELECT COALESCE(MAX(item_order) + 1, 0) FROM items WHERE collection_id = ?",
                (collection_id,),
            ).fetchone()
            start = int(row[0])
            self._insert_items(
                conn, collection_id, [it.with_order(start + i) for i, it in enumerate(items)]
            )

    def rename(self, collection_id: str, name: str) -> None:
        with self._transaction() as conn:
            self._touch(conn, collection_id)
            conn.execute("UPDATE collections SET name = ? WHERE id = ?", (name, collection_id))

    # Internal helpers
    def _touch(self, conn: sqlite3.Connection, collection_id: str) -> None:
        cur = conn.execute(
            "UPDATE collections SET updated_at = ? WHERE id = ?",
            (_now().isoformat(), collection_id),
        )
        if cur.rowcount == 0:
            raise CollectionNotFoundError(collection_id)

    def _insert_items(
        self, conn: sqlite3.Connection, collection_id: str, items: list[MediaItem]
    ) -> None:
        conn.executemany(
            "INSERT INTO items (id, collection_id, path, thumbnail_path, added_at, item_order, kind)"
            " VALUES (?, ?, ?, ?, ?, ?, ?)",
            [
                (
                    it.id,
                    collection_id,
                    it.path,
                    it.thumbnail_path,
                    it.added_at.isoformat(),
                    it.order,
                    it.kind.value,
                )
                for it in items
            ],
        )

    def _to_collection(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Collection:
        item_rows = conn.execute(
            "SELECT * FROM items WHERE collection_id = ? ORDER BY item_order ASC",
            (row["id"],),
        ).fetchall()
        items = [
            MediaItem(
                id=r["id"],
                path=r["path"],
                thumbnail_path=r["thumbnail_path"],
                added_at=datetime.fromisoformat(r["added_at"]),
                order=int(r["item_order"]),
                kind=MediaKind.decode(r["kind"]),
            )
            for r in item_rows
        ]
        return Collection(
            id=row["id"],
            name=row["name"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            items=items,
            ephemeral=False,
        )
