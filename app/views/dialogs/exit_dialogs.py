"""Dialogs shown after the device lock on exit."""

from __future__ import annotations

from PySide6.QtWidgets import (
    QDialog,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from core.models import Disposition

_DARK = "background-color: #222; color: white;"


class DispositionDialog(QDialog):
    """Save / Discard / Cancel choice for an unsaved collection."""

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Save Collection?")
        self.setStyleSheet(_DARK)
        self.choice = Disposition.CANCEL

        root = QVBoxLayout(self)
        root.addWidget(QLabel("Would you like to save these items as a collection?"))

        btns = QHBoxLayout()
        self.btn_discard = QPushButton("Discard")
        self.btn_discard.setStyleSheet("color: #e53935;")
        self.btn_cancel = QPushButton("Cancel")
        self.btn_save = QPushButton("Save")
        self.btn_save.setStyleSheet("color: #43a047;")
        btns.addWidget(self.btn_discard)
        btns.addStretch(1)
        btns.addWidget(self.btn_cancel)
        btns.addWidget(self.btn_save)
        root.addLayout(btns)

        self.btn_discard.clicked.connect(lambda: self._choose(Disposition.DISCARD))
        self.btn_cancel.clicked.connect(lambda: self._choose(Disposition.CANCEL))
        self.btn_save.clicked.connect(lambda: self._choose(Disposition.SAVE))

    def _choose(self, choice: Disposition) -> None:
        self.choice = choice
        if choice is Disposition.CANCEL:
            self.reject()
        else:
            self.accept()


def ask_collection_name(parent: QWidget | None) -> str | None:
    """Return the entered collection name, or None if the prompt was cancelled."""
    text, ok = QInputDialog.getText(parent, "Collection Name", "Enter collection name:")
    if not ok:
        return None
    return text


def ask_retry_after_save_failure(parent: QWidget | None, error: str) -> bool:
    """Blocking retry/discard prompt. Returns True to retry."""
    box = QMessageBox(parent)
    box.setIcon(QMessageBox.Warning)
    box.setWindowTitle("Save Failed")
    box.setText("The collection could not be saved.")
    box.setInformativeText(error)
    retry = box.addButton("Retry", QMessageBox.AcceptRole)
    box.addButton("Discard", QMessageBox.DestructiveRole)
    box.exec()
    return box.clickedButton() is retry
