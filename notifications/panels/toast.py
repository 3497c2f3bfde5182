from __future__ import annotations

from typing import Any, Dict

from PySide6.QtCore import Qt, QTimer, Slot
from PySide6.QtWidgets import QLabel, QWidget

_COLORS = {
    "info": "#1e293b",
    "success": "#047857",
    "warning": "#b45309",
    "error": "#b91c1c",
}


class ToastOverlay(QLabel):
    """Short-lived message bubble pinned to the bottom of its parent window."""

    def __init__(self, parent: QWidget) -> None:
        super().__init__(parent)
        self.setAlignment(Qt.AlignCenter)
        self.setWordWrap(True)
        self.setAttribute(Qt.WA_TransparentForMouseEvents)
        self.hide()
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self.hide)

    @Slot(dict)
    def show_payload(self, payload: Dict[str, Any]) -> None:
        color = _COLORS.get(payload.get("severity", "info"), _COLORS["info"])
        self.setStyleSheet(
            f"background:{color}; color:white; padding:10px 18px; border-radius:14px; font-weight:700;"
        )
        self.setText(payload.get("message", ""))
        self.reposition()
        self.show()
        self.raise_()
        if payload.get("toast_mode") == "sticky":
            self._timer.stop()
        else:
            self._timer.start(int(payload.get("toast_duration_ms") or 3000))

    def reposition(self) -> None:
        parent = self.parentWidget()
        if parent is None:
            return
        width = min(480, max(240, parent.width() - 40))
        self.setFixedWidth(width)
        self.adjustSize()
        self.move((parent.width() - width) // 2, parent.height() - self.height() - 32)
