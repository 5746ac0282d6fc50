from __future__ import annotations

from pathlib import Path

from PySide6.QtWidgets import QDialog, QHBoxLayout, QLabel, QPushButton, QVBoxLayout

from core.models import MediaItem


class RemoveConfirmDialog(QDialog):
    def __init__(self, item: MediaItem, parent=None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Remove Item")
        self.setStyleSheet("background-color: #222; color: white;")

        root = QVBoxLayout(self)
        root.addWidget(QLabel("Remove this item from the collection?"))
        name = QLabel(Path(item.path).name)
        name.setStyleSheet("color: #aaa;")
        root.addWidget(name)

        btns = QHBoxLayout()
        self.btn_cancel = QPushButton("Cancel")
        self.btn_ok = QPushButton("Remove")
        self.btn_ok.setStyleSheet("color: #e53935;")
        btns.addWidget(self.btn_cancel)
        btns.addStretch(1)
        btns.addWidget(self.btn_ok)
        root.addLayout(btns)

        self.btn_ok.clicked.connect(self.accept)
        self.btn_cancel.clicked.connect(self.reject)
