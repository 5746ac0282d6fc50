from __future__ import annotations

import argparse
import sys
from pathlib import Path

from PySide6 import QtAsyncio
from PySide6.QtWidgets import QApplication
from loguru import logger

from app.viewmodels.presentation_vm import PresentationVM
from app.views.presentation_window import PresentationWindow
from app.views.theme import apply_theme
from core.errors import CollectionNotFoundError, EmptyCollectionError, PersistenceError
from core.models import Collection
from infrastructure.image_service import ImageService
from infrastructure.lock_bridge import DesktopLockBridge
from infrastructure.logging import get_app_data_directory, init_logging, open_latest_log
from infrastructure.media_source import MediaSource
from infrastructure.settings import JsonSettings
from infrastructure.sqlite_store import SqliteCollectionStore

BASE_DIR = Path(__file__).parent


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Secure full-screen media presentation.")
    parser.add_argument("paths", nargs="*", help="Media files or folders")
    parser.add_argument("--collection", help="Id of a saved collection to present")
    parser.add_argument("--start-index", type=int, default=0, help="Index of the first item")
    parser.add_argument("--settings", default=str(BASE_DIR / "settings.json"))
    parser.add_argument("--log-level", default="INFO", help="loguru level for the session log")
    parser.add_argument("--open-log", action="store_true", help="Open the latest log and exit")

    manage = parser.add_mutually_exclusive_group()
    manage.add_argument("--list", action="store_true", help="List saved collections and exit")
    manage.add_argument("--rename", nargs=2, metavar=("ID", "NAME"), help="Rename a collection")
    manage.add_argument("--delete", metavar="ID", help="Delete a saved collection")
    manage.add_argument("--add", metavar="ID", help="Append the given paths to a collection")
    return parser.parse_args(argv)


def _database_path(settings: JsonSettings) -> Path:
    raw = settings.get("storage.database_path")
    if isinstance(raw, str) and raw:
        return Path(raw).expanduser()
    return get_app_data_directory() / "collections.db"


def _manage_collections(
    args: argparse.Namespace, store: SqliteCollectionStore, source: MediaSource | None = None
) -> int | None:
    """Run a collection management command; None when none was requested."""
    try:
        if args.list:
            for c in store.list_all():
                print(f"{c.id}\t{c.name}\t{c.item_count} items\t{c.updated_at:%Y-%m-%d %H:%M}")
            return 0
        if args.rename:
            collection_id, name = args.rename
            if not name.strip():
                print("Collection name must not be empty", file=sys.stderr)
                return 2
            store.rename(collection_id, name.strip())
            logger.info("Renamed collection {} to {!r}", collection_id, name.strip())
            return 0
        if args.delete:
            store.remove(args.delete)
            logger.info("Deleted collection {}", args.delete)
            return 0
        if args.add:
            result = (source or MediaSource()).ingest(args.paths)
            for r in result.rejected:
                print(f"Skipped {r.path}: {r.reason}", file=sys.stderr)
            if not result.items:
                print("No supported media in the given paths", file=sys.stderr)
                return 2
            store.add_items(args.add, result.items)
            logger.info("Added {} items to collection {}", len(result.items), args.add)
            return 0
    except (CollectionNotFoundError, PersistenceError) as ex:
        logger.error("Collection command failed: {}", ex)
        print(str(ex), file=sys.stderr)
        return 2
    return None


def _load_collection(
    args: argparse.Namespace, store: SqliteCollectionStore
) -> Collection | None:
    if args.collection:
        try:
            return store.load(args.collection)
        except (CollectionNotFoundError, PersistenceError) as ex:
            logger.error("Cannot load collection {}: {}", args.collection, ex)
            print(f"Cannot load collection: {ex}", file=sys.stderr)
            return None
    try:
        collection, rejected = MediaSource().build_ephemeral_collection(args.paths)
    except EmptyCollectionError as ex:
        print(str(ex), file=sys.stderr)
        return None
    for r in rejected:
        logger.info("Skipped {}: {}", r.path, r.reason)
    return collection


def _present(collection: Collection, settings: JsonSettings, store, start_index: int) -> None:
    presentation = settings.presentation()
    app = QApplication(sys.argv[:1])
    apply_theme(app, presentation.theme_mode)
    window = PresentationWindow()
    bridge = DesktopLockBridge(window)
    if presentation.auto_lock_enabled and not bridge.is_auto_lock_capable():
        bridge.request_auto_lock_capability()

    images = ImageService(settings)
    vm = PresentationVM(
        collection,
        lock_bridge=bridge,
        store=store,
        settings=presentation,
        image_loader=images.load_display_image,
        initial_index=start_index,
    )
    window.bind(vm)
    window.show()
    vm.start()
    logger.info("Presenting {} ({} items)", collection.name, collection.item_count)
    QtAsyncio.run(handle_sigint=True)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    init_logging(level=args.log_level.upper())
    if args.open_log:
        return 0 if open_latest_log() else 1

    settings = JsonSettings(args.settings)
    store = SqliteCollectionStore(_database_path(settings))
    try:
        code = _manage_collections(args, store)
        if code is not None:
            return code

        collection = _load_collection(args, store)
        if collection is None:
            return 2
        _present(collection, settings, store, args.start_index)
        return 0
    finally:
        store.close()


if __name__ == "__main__":
    raise SystemExit(main())
