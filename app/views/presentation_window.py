from __future__ import annotations

import time

from PySide6.QtCore import QEasingCurve, QPointF, QPropertyAnimation, Qt, QTimer
from PySide6.QtGui import QKeyEvent, QMouseEvent, QPixmap, QResizeEvent, QWheelEvent
from PySide6.QtWidgets import (
    QGraphicsOpacityEffect,
    QLabel,
    QPushButton,
    QStackedLayout,
    QWidget,
)
from loguru import logger

from app.viewmodels.presentation_vm import PresentationVM
from app.views.constants import (
    EXIT_BUTTON_SIZE_PX,
    EXIT_LONG_PRESS_MS,
    MAX_ZOOM,
    MIN_ZOOM,
    OVERLAY_STYLE,
    SWIPE_MIN_DISTANCE_PX,
    TAP_ZONE_RATIO,
    TOAST_DURATION_MS,
    TRANSITION_MS,
    ZOOM_STEP,
)
from app.views.dialogs.exit_dialogs import (
    DispositionDialog,
    ask_collection_name,
    ask_retry_after_save_failure,
)
from app.views.dialogs.remove_confirm_dialog import RemoveConfirmDialog
from app.views.widgets.video_player import VideoPlayerWidget
from core.models import Disposition, ExitIntent, MediaItem


class PresentationWindow(QWidget):
    """Full-screen presentation surface.

    Gestures:
    - left/right third click or arrow keys: previous/next
    - fast upward drag: remove current item
    - exit button click / Escape: exit with lock and disposition
    - exit button long press: immediate secure exit
    - ctrl+wheel: zoom (when enabled)
    """

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Presentation")
        self.setStyleSheet("background-color: black;")
        self.setFocusPolicy(Qt.StrongFocus)

        self._vm: PresentationVM | None = None
        self._video: VideoPlayerWidget | None = None
        self._pixmap: QPixmap | None = None
        self._zoom = MIN_ZOOM
        self._press_pos: QPointF | None = None
        self._press_time = 0.0

        self._stack = QStackedLayout(self)
        self._stack.setStackingMode(QStackedLayout.StackAll)
        self._image_label = QLabel()
        self._image_label.setAlignment(Qt.AlignCenter)
        self._stack.addWidget(self._image_label)

        self._image_opacity = QGraphicsOpacityEffect(self._image_label)
        self._image_opacity.setOpacity(1.0)
        self._image_label.setGraphicsEffect(self._image_opacity)
        self._fade = QPropertyAnimation(self._image_opacity, b"opacity", self)
        self._fade.setDuration(TRANSITION_MS)
        self._fade.setStartValue(0.0)
        self._fade.setEndValue(1.0)
        self._fade.setEasingCurve(QEasingCurve.OutCubic)

        self._counter = QLabel(self)
        self._counter.setStyleSheet(OVERLAY_STYLE)
        self._counter.hide()

        self._toast = QLabel(self)
        self._toast.setStyleSheet(OVERLAY_STYLE)
        self._toast.hide()
        self._toast_timer = QTimer(self)
        self._toast_timer.setSingleShot(True)
        self._toast_timer.timeout.connect(self._toast.hide)

        self._exit_button = QPushButton("✕", self)
        self._exit_button.setFixedSize(EXIT_BUTTON_SIZE_PX, EXIT_BUTTON_SIZE_PX)
        self._exit_button.setStyleSheet(OVERLAY_STYLE)
        self._exit_button.pressed.connect(self._on_exit_pressed)
        self._exit_button.released.connect(self._on_exit_released)
        self._long_press_timer = QTimer(self)
        self._long_press_timer.setSingleShot(True)
        self._long_press_timer.timeout.connect(self._on_exit_long_press)
        self._long_press_fired = False

    def bind(self, vm: PresentationVM) -> None:
        """Connect to a view-model; call before `vm.start()`."""
        self._vm = vm
        vm.cursorChanged.connect(lambda _i: self._render())
        vm.feedback.connect(self._show_toast)
        vm.removalConfirmationRequested.connect(self._on_removal_confirmation)
        vm.dispositionRequired.connect(self._on_disposition_required)
        vm.saveFailed.connect(self._on_save_failed)
        vm.sessionClosed.connect(self._on_session_closed)

    # Rendering
    def _render(self) -> None:
        if self._vm is None or not self._vm.controller.is_alive:
            return
        frame = self._vm.current_frame()
        self._release_video()
        self._fade.stop()
        self._image_opacity.setOpacity(1.0)
        self._zoom = MIN_ZOOM
        if frame.item.is_video:
            self._show_video(frame.item)
        elif frame.unavailable or frame.image is None:
            self._pixmap = None
            self._image_label.setPixmap(QPixmap())
            self._image_label.setText("⚠")
            self._image_label.setStyleSheet("color: white; font-size: 48px;")
            self._image_label.setToolTip(frame.error or "")
        else:
            self._pixmap = QPixmap.fromImage(frame.image)
            self._image_label.setText("")
            self._apply_pixmap()
            if self._wants_transition():
                self._fade.start()
        self._update_counter()
        self._layout_overlays()

    def _wants_transition(self) -> bool:
        # Jumps (removal, resume) are placed without animation.
        return (
            self._vm is not None
            and self._vm.settings.transition_animations
            and self._vm.controller.last_move_was_step
        )

    def _show_video(self, item: MediaItem) -> None:
        self._video = VideoPlayerWidget(item.path, autoplay=True, parent=self)
        self._stack.addWidget(self._video)
        self._stack.setCurrentWidget(self._video)
        self._exit_button.raise_()

    def _release_video(self) -> None:
        if self._video is None:
            return
        self._video.cleanup()
        self._stack.removeWidget(self._video)
        self._video.deleteLater()
        self._video = None
        self._stack.setCurrentWidget(self._image_label)

    def _apply_pixmap(self) -> None:
        if self._pixmap is None:
            return
        target = self.size() * self._zoom
        scaled = self._pixmap.scaled(target, Qt.KeepAspectRatio, Qt.SmoothTransformation)
        self._image_label.setPixmap(scaled)

    def _update_counter(self) -> None:
        text = self._vm.counter_text if self._vm is not None else None
        if text:
            self._counter.setText(text)
            self._counter.adjustSize()
            self._counter.show()
        else:
            self._counter.hide()

    def _layout_overlays(self) -> None:
        margin = 8
        self._counter.move((self.width() - self._counter.width()) // 2, margin)
        self._exit_button.move(self.width() - self._exit_button.width() - margin, margin)
        self._toast.move(
            (self.width() - self._toast.width()) // 2,
            self.height() - self._toast.height() - 4 * margin,
        )
        for w in (self._counter, self._exit_button, self._toast):
            w.raise_()

    def _show_toast(self, message: str) -> None:
        self._toast.setText(message)
        self._toast.adjustSize()
        self._layout_overlays()
        self._toast.show()
        self._toast_timer.start(TOAST_DURATION_MS)

    # Qt events
    def resizeEvent(self, event: QResizeEvent) -> None:  # noqa: N802
        super().resizeEvent(event)
        self._apply_pixmap()
        self._layout_overlays()

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802
        if self._vm is None:
            return super().keyPressEvent(event)
        key = event.key()
        if key in (Qt.Key_Right, Qt.Key_Space):
            self._vm.go_next()
        elif key == Qt.Key_Left:
            self._vm.go_previous()
        elif key == Qt.Key_Escape:
            self._vm.request_exit(ExitIntent.BACK)
        elif key == Qt.Key_Delete:
            self._vm.remove_current()
        else:
            super().keyPressEvent(event)
        return None

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        self._press_pos = event.position()
        self._press_time = time.monotonic()
        super().mousePressEvent(event)

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        if self._vm is None or self._press_pos is None:
            return super().mouseReleaseEvent(event)
        delta = event.position() - self._press_pos
        elapsed = max(time.monotonic() - self._press_time, 1e-3)
        self._press_pos = None
        if abs(delta.y()) >= SWIPE_MIN_DISTANCE_PX and abs(delta.y()) > abs(delta.x()):
            self._vm.vertical_swipe(delta.y() / elapsed)
        elif abs(delta.x()) < SWIPE_MIN_DISTANCE_PX:
            x = event.position().x()
            if x < self.width() * TAP_ZONE_RATIO:
                self._vm.go_previous()
            elif x > self.width() * (1 - TAP_ZONE_RATIO):
                self._vm.go_next()
        elif delta.x() < 0:
            self._vm.go_next()
        else:
            self._vm.go_previous()
        return None

    def wheelEvent(self, event: QWheelEvent) -> None:  # noqa: N802
        if self._vm is None or not self._vm.settings.pinch_zoom_enabled:
            return super().wheelEvent(event)
        if not event.modifiers() & Qt.ControlModifier:
            return super().wheelEvent(event)
        factor = ZOOM_STEP if event.angleDelta().y() > 0 else 1 / ZOOM_STEP
        self._zoom = min(MAX_ZOOM, max(MIN_ZOOM, self._zoom * factor))
        self._apply_pixmap()
        return None

    def closeEvent(self, event) -> None:  # noqa: N802
        self._release_video()
        if self._vm is not None and self._vm.controller.is_alive:
            self._vm.close()
        super().closeEvent(event)

    # Exit control
    def _on_exit_pressed(self) -> None:
        self._long_press_fired = False
        self._long_press_timer.start(EXIT_LONG_PRESS_MS)

    def _on_exit_released(self) -> None:
        self._long_press_timer.stop()
        if not self._long_press_fired and self._vm is not None:
            self._vm.request_exit(ExitIntent.EXIT_CONTROL)

    def _on_exit_long_press(self) -> None:
        self._long_press_fired = True
        if self._vm is not None:
            self._vm.request_exit(ExitIntent.SECURE)

    # Session prompts
    def _on_removal_confirmation(self, item: MediaItem) -> None:
        dlg = RemoveConfirmDialog(item, self)
        confirmed = dlg.exec() == RemoveConfirmDialog.Accepted
        if self._vm is not None:
            self._vm.resolve_removal(confirmed)

    def _on_disposition_required(self) -> None:
        # The signal arrives inside an asyncio task step; open the modal after it.
        QTimer.singleShot(0, self._prompt_disposition)

    def _prompt_disposition(self) -> None:
        if self._vm is None:
            return
        while True:
            dlg = DispositionDialog(self)
            dlg.exec()
            if dlg.choice is Disposition.DISCARD:
                self._vm.discard()
                return
            if dlg.choice is Disposition.CANCEL:
                self._vm.cancel_exit()
                self.activateWindow()
                return
            name = ask_collection_name(self)
            if name and name.strip():
                self._vm.save(name)
                return
            logger.info("Collection name prompt dismissed; asking again")

    def _on_save_failed(self, error: str) -> None:
        QTimer.singleShot(0, lambda: self._prompt_save_retry(error))

    def _prompt_save_retry(self, error: str) -> None:
        if self._vm is None:
            return
        if ask_retry_after_save_failure(self, error):
            self._vm.retry_save()
        else:
            self._vm.discard()

    def _on_session_closed(self, saved_collection_id: str) -> None:
        if saved_collection_id:
            logger.info("Collection saved as {}", saved_collection_id)
        self._release_video()
        self.close()
