"""Application palette for the configured theme mode."""

from __future__ import annotations

from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import QApplication
from loguru import logger

from core.settings import ThemeMode

_DARK = {
    QPalette.ColorRole.Window: "#202124",
    QPalette.ColorRole.WindowText: "#e8eaed",
    QPalette.ColorRole.Base: "#171717",
    QPalette.ColorRole.AlternateBase: "#2a2b2e",
    QPalette.ColorRole.Text: "#e8eaed",
    QPalette.ColorRole.Button: "#2d2e31",
    QPalette.ColorRole.ButtonText: "#e8eaed",
    QPalette.ColorRole.Highlight: "#8ab4f8",
    QPalette.ColorRole.HighlightedText: "#202124",
    QPalette.ColorRole.ToolTipBase: "#2d2e31",
    QPalette.ColorRole.ToolTipText: "#e8eaed",
}

_LIGHT = {
    QPalette.ColorRole.Window: "#f5f5f5",
    QPalette.ColorRole.WindowText: "#202124",
    QPalette.ColorRole.Base: "#ffffff",
    QPalette.ColorRole.AlternateBase: "#eeeeee",
    QPalette.ColorRole.Text: "#202124",
    QPalette.ColorRole.Button: "#e8e8e8",
    QPalette.ColorRole.ButtonText: "#202124",
    QPalette.ColorRole.Highlight: "#1a73e8",
    QPalette.ColorRole.HighlightedText: "#ffffff",
    QPalette.ColorRole.ToolTipBase: "#ffffff",
    QPalette.ColorRole.ToolTipText: "#202124",
}


def build_palette(mode: ThemeMode, base: QPalette) -> QPalette:
    """Return `base` recoloured for `mode`; SYSTEM returns it unchanged."""
    colors = {ThemeMode.DARK: _DARK, ThemeMode.LIGHT: _LIGHT}.get(mode)
    palette = QPalette(base)
    if colors is None:
        return palette
    for role, value in colors.items():
        palette.setColor(role, QColor(value))
    return palette


def apply_theme(app: QApplication, mode: ThemeMode) -> None:
    """Apply `mode` to the dialogs and overlays of `app`."""
    app.setPalette(build_palette(mode, app.style().standardPalette()))
    logger.info("Theme mode: {}", mode.value)
