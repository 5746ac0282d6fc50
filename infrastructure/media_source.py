"""Media ingestion: classify paths by extension and build collections.

Unsupported files are rejected here so that a session only ever sees
image and video items.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
import uuid

from loguru import logger

from core.errors import EmptyCollectionError, MediaRejected
from core.models import Collection, MediaItem, MediaKind

IMAGE_EXTENSIONS = frozenset(
    {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".heic", ".heif"}
)
VIDEO_EXTENSIONS = frozenset(
    {
        ".mp4",
        ".mov",
        ".avi",
        ".mkv",
        ".wmv",
        ".flv",
        ".3gp",
        ".webm",
        ".m4v",
        ".3gpp",
        ".ts",
        ".mts",
    }
)

EPHEMERAL_NAME = "Shared items"


def classify(path: str) -> MediaKind | None:
    """Return the media kind for `path`, or None if the extension is unsupported."""
    ext = Path(path).suffix.lower()
    if ext in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    if ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return None


def is_video(path: str) -> bool:
    return classify(path) is MediaKind.VIDEO


@dataclass
class IngestResult:
    """Outcome of an ingestion.

    Attributes:
        items: Accepted items with dense orders starting at 0.
        rejected: Paths that were refused, with the reason.
    """

    items: list[MediaItem] = field(default_factory=list)
    rejected: list[MediaRejected] = field(default_factory=list)


class MediaSource:
    """Turns file system paths into media items."""

    def __init__(self, require_existing: bool = True) -> None:
        self._require_existing = require_existing

    def ingest(self, paths: Iterable[str]) -> IngestResult:
        """Classify `paths` in the given order; directories are expanded."""
        result = IngestResult()
        now = datetime.now()
        for raw in paths:
            p = Path(raw)
            if p.is_dir():
                candidates = sorted(c for c in p.iterdir() if c.is_file())
            else:
                candidates = [p]
            for candidate in candidates:
                self._ingest_one(str(candidate), now, result)
        if result.rejected:
            logger.info("Ingestion rejected {} path(s)", len(result.rejected))
        return result

    def ingest_directory(self, directory: str, recursive: bool = False) -> IngestResult:
        """Ingest every supported file under `directory`, sorted by path."""
        root = Path(directory)
        pattern = "**/*" if recursive else "*"
        files = sorted(str(p) for p in root.glob(pattern) if p.is_file())
        return self.ingest(files)

    def build_ephemeral_collection(
        self, paths: Iterable[str], name: str = EPHEMERAL_NAME
    ) -> tuple[Collection, list[MediaRejected]]:
        """Build an unsaved collection from `paths`.

        Raises:
            EmptyCollectionError: when no supported item was found.
        """
        result = self.ingest(paths)
        if not result.items:
            raise EmptyCollectionError("No supported media in the given paths")
        now = datetime.now()
        collection = Collection(
            id=f"ephemeral-{uuid.uuid4()}",
            name=name,
            created_at=now,
            updated_at=now,
            items=result.items,
            ephemeral=True,
        )
        return collection, result.rejected

    def _ingest_one(self, path: str, now: datetime, result: IngestResult) -> None:
        kind = classify(path)
        if kind is None:
            result.rejected.append(MediaRejected(path, "unsupported extension"))
            return
        if self._require_existing and not Path(path).is_file():
            result.rejected.append(MediaRejected(path, "file not found"))
            return
        result.items.append(
            MediaItem(
                id=str(uuid.uuid4()),
                path=path,
                added_at=now,
                order=len(result.items),
                kind=kind,
            )
        )
