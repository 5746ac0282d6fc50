"""Image decoding for the presentation view.

Qt's reader handles the common formats; Pillow with pillow-heif covers
HEIC/HEIF and anything Qt cannot decode. Failures raise `MediaUnavailable`
so the session can show a placeholder and keep going.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from PIL import Image, ImageOps
from pillow_heif import register_heif_opener
from PySide6.QtCore import QSize, Qt
from PySide6.QtGui import QImage, QImageReader
from loguru import logger

from core.errors import MediaUnavailable

register_heif_opener()

DEFAULT_MAX_SIDE = 2560
_PILLOW_FIRST = {".heic", ".heif"}


class ImageService:
    """Loads display-sized QImages from disk."""

    def __init__(self, settings: object | None = None) -> None:
        """Read `image.max_side` from settings (0 keeps the original size)."""
        self._max_side = DEFAULT_MAX_SIDE
        if settings is not None:
            try:
                self._max_side = int(settings.get("image.max_side", DEFAULT_MAX_SIDE) or 0)
            except (ValueError, TypeError):
                self._max_side = DEFAULT_MAX_SIDE

    @property
    def max_side(self) -> int:
        return self._max_side

    # Public API
    def load_display_image(self, path: str) -> QImage:
        """Return the image at `path` bounded by `max_side`.

        Raises:
            MediaUnavailable: if the file is missing or cannot be decoded.
        """
        if not os.path.isfile(path):
            raise MediaUnavailable(path, "file not found")

        ext = Path(path).suffix.lower()
        loaders = (self._load_via_pillow, self._load_via_qt)
        if ext not in _PILLOW_FIRST:
            loaders = (self._load_via_qt, self._load_via_pillow)
        for load in loaders:
            img = load(path, self._max_side)
            if img is not None and not img.isNull():
                return img
        raise MediaUnavailable(path, "cannot decode image")

    # Internal helpers
    def _load_via_qt(self, path: str, requested_side: int) -> QImage | None:
        try:
            reader = QImageReader(path)
            reader.setAutoTransform(True)
            if requested_side > 0 and reader.size().isValid():
                orig = reader.size()
                w, h = orig.width(), orig.height()
                if w > requested_side or h > requested_side:
                    scaled = QSize(w, h).scaled(
                        requested_side, requested_side, Qt.KeepAspectRatio
                    )
                    reader.setScaledSize(scaled)
            img = reader.read()
            if img is None or img.isNull():
                logger.debug("QImageReader failed for {}: {}", path, reader.errorString())
                return None
            return img
        except (OSError, ValueError) as ex:
            logger.debug("QImageReader failed for {}: {}", path, ex)
            return None

    def _load_via_pillow(self, path: str, requested_side: int) -> QImage | None:
        """Load image with Pillow (HEIF supported through pillow-heif)."""
        try:
            with Image.open(path) as im:
                im = ImageOps.exif_transpose(im)
                if requested_side > 0:
                    im.thumbnail((requested_side, requested_side), Image.Resampling.LANCZOS)
                return self._pil_to_qimage(im)
        except (OSError, ValueError) as ex:
            logger.debug("Pillow load failed for {}: {}", path, ex)
            return None

    def _pil_to_qimage(self, pil_img: Any) -> QImage | None:
        """Convert a Pillow image to `QImage` and detach from the source buffer."""
        try:
            mode = pil_img.mode
            if mode not in ("RGBA", "RGB"):
                pil_img = pil_img.convert("RGBA")
                mode = pil_img.mode
            if mode == "RGB":
                data = pil_img.tobytes("raw", "RGB")
                qimg = QImage(
                    data, pil_img.width, pil_img.height, pil_img.width * 3, QImage.Format_RGB888
                )
            else:
                data = pil_img.tobytes("raw", "RGBA")
                qimg = QImage(
                    data, pil_img.width, pil_img.height, pil_img.width * 4, QImage.Format_RGBA8888
                )
            if qimg.isNull():
                return None
            return qimg.copy()
        except (ValueError, TypeError) as ex:
            logger.debug("PIL->QImage convert failed: {}", ex)
            return None
