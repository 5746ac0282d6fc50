from PySide6.QtGui import QPalette

from app.views.presentation_window import PresentationWindow
from app.views.theme import apply_theme, build_palette
from core.settings import ThemeMode


def test_dark_and_light_palettes_differ_from_each_other(qapp):
    base = qapp.style().standardPalette()
    dark = build_palette(ThemeMode.DARK, base)
    light = build_palette(ThemeMode.LIGHT, base)

    assert dark.color(QPalette.ColorRole.Window).lightness() < 100
    assert light.color(QPalette.ColorRole.Window).lightness() > 200
    assert build_palette(ThemeMode.SYSTEM, base) == base


def test_apply_theme_sets_application_palette(qapp):
    original = qapp.palette()
    try:
        apply_theme(qapp, ThemeMode.DARK)
        assert qapp.palette().color(QPalette.ColorRole.Window).lightness() < 100
    finally:
        qapp.setPalette(original)


def test_disposition_prompt_opens_after_the_signal_returns(qtbot):
    window = PresentationWindow()
    qtbot.addWidget(window)
    prompted: list[bool] = []
    window._prompt_disposition = lambda: prompted.append(True)

    window._on_disposition_required()
    assert prompted == []

    qtbot.waitUntil(lambda: prompted == [True], timeout=1000)


def test_save_retry_prompt_is_deferred(qtbot):
    window = PresentationWindow()
    qtbot.addWidget(window)
    errors: list[str] = []
    window._prompt_save_retry = errors.append

    window._on_save_failed("disk full")
    assert errors == []

    qtbot.waitUntil(lambda: errors == ["disk full"], timeout=1000)
