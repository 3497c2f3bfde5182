"""Login dialog (PySide6 Widgets).

Shown on startup when no remembered session exists.  Credentials are checked
against the ``users`` table; nothing else in the app is reachable until the
dialog is accepted.
"""
from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QVBoxLayout,
    QWidget,
)

from modules._infra.repository import StoreError
from modules.users.models.schemas import UserRead
from modules.users.services import UserService


class LoginDialog(QDialog):
    """Modal startup dialog collecting username and password."""

    def __init__(self, users: UserService, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("ورود به سیستم")
        self.setModal(True)
        self.setLayoutDirection(Qt.RightToLeft)
        self._users = users
        self.user: Optional[UserRead] = None

        self.username_edit = QLineEdit()
        self.password_edit = QLineEdit()
        self.password_edit.setEchoMode(QLineEdit.Password)
        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #b91c1c; font-weight: 700;")

        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.btn_login = self.buttons.button(QDialogButtonBox.Ok)
        self.btn_login.setText("ورود")
        self.btn_login.setEnabled(False)

        form = QFormLayout()
        form.addRow("نام کاربری", self.username_edit)
        form.addRow("رمز عبور", self.password_edit)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(self.error_label)
        layout.addWidget(self.buttons)

        self.username_edit.textChanged.connect(self._update_login_enabled)
        self.password_edit.textChanged.connect(self._update_login_enabled)
        self.buttons.accepted.connect(self._accept)
        self.buttons.rejected.connect(self.reject)

    def _update_login_enabled(self) -> None:
        self.btn_login.setEnabled(bool(self.username_edit.text().strip() and self.password_edit.text()))

    def _show_error(self, text: str) -> None:
        self.error_label.setText(text)
        QTimer.singleShot(2000, lambda: self.error_label.setText(""))

    def _accept(self) -> None:
        try:
            user = self._users.login(self.username_edit.text().strip(), self.password_edit.text())
        except StoreError:
            self._show_error("ارتباط با پایگاه داده برقرار نشد")
            return
        if user is None:
            self._show_error("نام کاربری یا رمز عبور اشتباه است")
            return
        self.user = user
        self.accept()
