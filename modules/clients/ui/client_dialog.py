from __future__ import annotations

from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QVBoxLayout,
    QWidget,
)
from pydantic import ValidationError

from modules.clients.models.schemas import ClientCreate, ClientRead
from modules.clients.services import ClientService


class ClientDialog(QDialog):
    """Create or edit a client record.

    The plate is checked against existing clients while typing; a
    duplicate disables saving for new clients.
    """

    def __init__(self, clients: ClientService, client: Optional[ClientRead] = None, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("ویرایش مشتری" if client else "پرونده جدید")
        self.setLayoutDirection(Qt.RightToLeft)
        self._clients = clients
        self._editing = client
        self.data: Optional[ClientCreate] = None

        self.name_edit = QLineEdit(client.name if client else "")
        self.father_edit = QLineEdit(client.father_name if client else "")
        self.plate_edit = QLineEdit(client.tazkira if client else "")
        self.phone_edit = QLineEdit(client.phone if client else "")
        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #b91c1c; font-weight: 700;")

        form = QFormLayout()
        form.addRow("نام و تخلص *", self.name_edit)
        form.addRow("نام پدر", self.father_edit)
        form.addRow("شماره پلاک *", self.plate_edit)
        form.addRow("شماره تماس", self.phone_edit)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(self.error_label)
        layout.addWidget(self.buttons)

        self.plate_edit.textChanged.connect(self._check_plate)
        self.buttons.accepted.connect(self._accept)
        self.buttons.rejected.connect(self.reject)

    def _check_plate(self, text: str) -> None:
        if self._editing is not None:
            return
        duplicate = self._clients.find_by_plate(text) is not None
        self.error_label.setText("این شماره پلاک قبلاً ثبت شده است" if duplicate else "")
        self.buttons.button(QDialogButtonBox.Save).setEnabled(not duplicate)

    def _accept(self) -> None:
        try:
            self.data = ClientCreate(
                name=self.name_edit.text(),
                father_name=self.father_edit.text(),
                tazkira=self.plate_edit.text(),
                phone=self.phone_edit.text(),
            )
        except ValidationError:
            self.error_label.setText("لطفاً فیلدهای ضروری را پر کنید")
            return
        self.accept()
