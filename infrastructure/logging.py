"""Logging initialization utilities using loguru."""

from __future__ import annotations

import os
from pathlib import Path
import subprocess
import sys

from loguru import logger

APP_DIR_NAME = "SafeGallery"


def get_app_data_directory() -> Path:
    """Per-user data directory (LOCALAPPDATA on Windows, XDG/Library elsewhere)."""
    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(base) / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    base = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / APP_DIR_NAME


def get_log_directory() -> str:
    """Get the main log directory path."""
    return str(get_app_data_directory() / "logs")


def init_logging(log_dir: str | None = None, level: str = "INFO") -> None:
    """Initialize rotating file logging under the given directory."""
    if log_dir is None:
        log_dir = get_log_directory()
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        str(log_path / "app_{time:YYYYMMDD}.log"),
        rotation="10 MB",
        retention="10 days",
        compression="zip",
        enqueue=True,
        backtrace=False,
        diagnose=False,
        level=level,
    )


def find_latest_log_file(log_dir: str | None = None) -> Path | None:
    """Most recently written `app_*.log` in `log_dir`, if any."""
    log_path = Path(log_dir or get_log_directory())
    try:
        candidates = [p for p in log_path.glob("app_*.log") if p.is_file()]
        return max(candidates, key=lambda p: p.stat().st_mtime, default=None)
    except OSError:
        return None


def open_file_in_default_app(file_path: str) -> bool:
    """Hand `file_path` to the desktop's default viewer."""
    try:
        if os.name == "nt":
            os.startfile(file_path)  # pylint: disable=no-member
            return True
        opener = "open" if sys.platform == "darwin" else "xdg-open"
        subprocess.run([opener, file_path], check=True)
        return True
    except (OSError, subprocess.CalledProcessError) as ex:
        logger.warning("Cannot open {}: {}", file_path, ex)
        return False


def open_latest_log(log_dir: str | None = None) -> bool:
    """Open the newest session log; False when there is none."""
    log_file = find_latest_log_file(log_dir)
    if log_file is None:
        return False
    return open_file_in_default_app(str(log_file))
