"""Video player widget shown for video items of a presentation."""

from __future__ import annotations

import os

from PySide6.QtCore import Qt, QUrl, Signal
from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer
from PySide6.QtMultimediaWidgets import QVideoWidget
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSizePolicy,
    QSlider,
    QVBoxLayout,
    QWidget,
)
from loguru import logger


def format_duration(milliseconds: int) -> str:
    """Format duration in milliseconds to MM:SS or HH:MM:SS."""
    if milliseconds < 0:
        return "--:--"
    total_seconds = milliseconds // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


class VideoPlayerWidget(QWidget):
    """Plays one video, loaded only when the item is displayed.

    Playback loops so a paused auto-advance does not leave a black frame.
    """

    loadFailed = Signal(str)

    def __init__(self, path: str, autoplay: bool = True, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._path = path
        self._duration = 0
        self._slider_dragging = False

        self._media_player = QMediaPlayer(self)
        self._audio_output = QAudioOutput(self)
        self._audio_output.setVolume(0.5)
        self._media_player.setAudioOutput(self._audio_output)
        self._media_player.setLoops(QMediaPlayer.Loops.Infinite)
        self._video_widget = QVideoWidget(self)
        self._media_player.setVideoOutput(self._video_widget)

        self._media_player.durationChanged.connect(self._on_duration_changed)
        self._media_player.positionChanged.connect(self._on_position_changed)
        self._media_player.playbackStateChanged.connect(self._update_play_button)
        self._media_player.errorOccurred.connect(self._on_error)

        self._setup_ui()

        if not os.path.isfile(path):
            self._show_error("Video file not found or cannot be played")
            return
        self._media_player.setSource(QUrl.fromLocalFile(path))
        if autoplay:
            self._media_player.play()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._video_widget.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        layout.addWidget(self._video_widget)

        self._error_label = QLabel("⚠")
        self._error_label.setAlignment(Qt.AlignCenter)
        self._error_label.setStyleSheet("color: white; font-size: 48px;")
        self._error_label.hide()
        layout.addWidget(self._error_label)

        controls = QHBoxLayout()
        self._play_button = QPushButton("▶")
        self._play_button.setFixedSize(30, 30)
        self._play_button.clicked.connect(self._toggle_playback)
        controls.addWidget(self._play_button)

        self._progress_slider = QSlider(Qt.Horizontal)
        self._progress_slider.setRange(0, 0)
        self._progress_slider.sliderPressed.connect(self._on_slider_pressed)
        self._progress_slider.sliderReleased.connect(self._on_slider_released)
        controls.addWidget(self._progress_slider)

        self._time_label = QLabel("--:-- / --:--")
        self._time_label.setStyleSheet("color: white;")
        controls.addWidget(self._time_label)
        layout.addLayout(controls)

    def _toggle_playback(self) -> None:
        if self.is_playing():
            self._media_player.pause()
        else:
            self._media_player.play()

    def _on_slider_pressed(self) -> None:
        self._slider_dragging = True

    def _on_slider_released(self) -> None:
        self._slider_dragging = False
        self._media_player.setPosition(self._progress_slider.value())

    def _update_play_button(self, *_args) -> None:
        self._play_button.setText("⏸" if self.is_playing() else "▶")

    def _on_duration_changed(self, duration: int) -> None:
        self._duration = duration
        self._progress_slider.setRange(0, duration)

    def _on_position_changed(self, position: int) -> None:
        if not self._slider_dragging:
            self._progress_slider.setValue(position)
        self._time_label.setText(f"{format_duration(position)} / {format_duration(self._duration)}")

    def _on_error(self, _error, message: str = "") -> None:
        logger.error("Video playback failed for {}: {}", self._path, message)
        self._show_error("Video file not found or cannot be played")

    def _show_error(self, message: str) -> None:
        self._video_widget.hide()
        self._error_label.setToolTip(message)
        self._error_label.show()
        self.loadFailed.emit(self._path)

    # Public API
    def is_playing(self) -> bool:
        return self._media_player.playbackState() == QMediaPlayer.PlaybackState.PlayingState

    def cleanup(self) -> None:
        """Stop playback and release the media source."""
        try:
            self._media_player.stop()
            self._media_player.setSource(QUrl())
        except RuntimeError:
            pass
