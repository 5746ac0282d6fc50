"""Desktop implementation of the device-lock capability.

Locks the workstation the way each OS exposes it:
- Windows: `user32.LockWorkStation` via ctypes
- macOS: `pmset displaysleepnow` (locks when "require password" is set)
- Linux: `loginctl lock-session`, falling back to `xdg-screensaver lock`

`lock()` never raises; `LockUnavailable` and other platform failures are
reported as False.
"""

from __future__ import annotations

import asyncio
import ctypes
import functools
import shutil
import subprocess
import sys
from typing import Any

from loguru import logger

from core.errors import LockUnavailable

LINUX_LOCK_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("loginctl", "lock-session"),
    ("xdg-screensaver", "lock"),
)
MACOS_LOCK_COMMANDS: tuple[tuple[str, ...], ...] = (("pmset", "displaysleepnow"),)

LOCK_TIMEOUT_S = 10.0


class DesktopLockBridge:
    """LockBridge for Windows, macOS and Linux desktops.

    `window` is an optional Qt top-level widget put into full-screen,
    stay-on-top mode while the presentation runs.
    """

    def __init__(
        self,
        window: Any | None = None,
        platform: str | None = None,
        commands: tuple[tuple[str, ...], ...] | None = None,
    ) -> None:
        self._window = window
        self._platform = platform or sys.platform
        if commands is not None:
            self._commands = commands
        elif self._platform == "darwin":
            self._commands = MACOS_LOCK_COMMANDS
        else:
            self._commands = LINUX_LOCK_COMMANDS
        self._secure = False

    @property
    def is_windows(self) -> bool:
        return self._platform.startswith("win")

    @property
    def in_secure_mode(self) -> bool:
        return self._secure

    def enter_secure_mode(self) -> None:
        self._secure = True
        if self._window is None:
            return
        try:
            from PySide6.QtCore import Qt  # pylint: disable=import-outside-toplevel

            self._window.setWindowFlag(Qt.WindowStaysOnTopHint, True)
            self._window.showFullScreen()
        except RuntimeError as ex:
            logger.warning("Failed to enter secure mode: {}", ex)

    def exit_secure_mode(self) -> None:
        self._secure = False
        if self._window is None:
            return
        try:
            from PySide6.QtCore import Qt  # pylint: disable=import-outside-toplevel

            self._window.setWindowFlag(Qt.WindowStaysOnTopHint, False)
            self._window.showNormal()
        except RuntimeError as ex:
            logger.warning("Failed to exit secure mode: {}", ex)

    async def lock(self) -> bool:
        """Lock the workstation; True only when the OS accepted the request."""
        try:
            if self.is_windows:
                return self._lock_windows()
            return await self._lock_via_commands()
        except LockUnavailable as ex:
            logger.warning("Device lock unavailable: {}", ex)
            return False
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.warning("Device lock failed: {}", ex)
            return False

    def is_auto_lock_capable(self) -> bool:
        if self.is_windows:
            return True
        return any(shutil.which(cmd[0]) for cmd in self._commands)

    def request_auto_lock_capability(self) -> None:
        # Desktop sessions need no extra grant; point the user at the missing tool.
        if self.is_auto_lock_capable():
            logger.info("Device lock already available")
            return
        names = ", ".join(cmd[0] for cmd in self._commands)
        logger.warning("No lock command found; install one of: {}", names)

    def _lock_windows(self) -> bool:
        windll = getattr(ctypes, "windll", None)
        if windll is None:
            raise LockUnavailable("user32 is not available")
        return bool(windll.user32.LockWorkStation())

    async def _lock_via_commands(self) -> bool:
        # Runs off the event loop: QtAsyncio has no subprocess transport.
        loop = asyncio.get_running_loop()
        tried = False
        for cmd in self._commands:
            if shutil.which(cmd[0]) is None:
                logger.debug("Lock command not found: {}", cmd[0])
                continue
            tried = True
            try:
                rc = await loop.run_in_executor(None, functools.partial(_run_command, cmd))
            except (OSError, subprocess.TimeoutExpired) as ex:
                logger.warning("Lock command {} failed: {}", cmd[0], ex)
                continue
            if rc == 0:
                logger.info("Locked via {}", " ".join(cmd))
                return True
            logger.warning("Lock command {} exited with {}", cmd[0], rc)
        if not tried:
            raise LockUnavailable("no lock command installed")
        return False


def _run_command(cmd: tuple[str, ...]) -> int:
    """Run `cmd` to completion; the child is killed when the timeout expires."""
    completed = subprocess.run(
        cmd,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        timeout=LOCK_TIMEOUT_S,
        check=False,
    )
    return completed.returncode
