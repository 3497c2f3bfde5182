"""Backup page of the settings tab."""

from __future__ import annotations

import logging

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QFileDialog, QLabel, QMessageBox, QPushButton, QVBoxLayout, QWidget

from modules._infra.repository import StoreError
from notifications.models import Notification
from utils.state import AppContext

logger = logging.getLogger(__name__)


class BackupPanel(QWidget):
    restored = Signal()

    def __init__(self, ctx: AppContext, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.ctx = ctx
        self.setLayoutDirection(Qt.RightToLeft)
        self.btn_export = QPushButton("دریافت نسخه پشتیبان")
        self.btn_import = QPushButton("بازیابی از فایل")
        warning = QLabel("بازیابی، تمام اطلاعات فعلی به جز حساب مدیر را جایگزین می‌کند.")
        warning.setStyleSheet("color: #b45309; font-weight: 700;")
        warning.setWordWrap(True)

        layout = QVBoxLayout(self)
        layout.addWidget(self.btn_export)
        layout.addWidget(self.btn_import)
        layout.addWidget(warning)
        layout.addStretch(1)

        self.btn_export.clicked.connect(self.export_backup)
        self.btn_import.clicked.connect(self._choose_import)

    def _toast(self, message: str, severity: str = "success") -> None:
        self.ctx.notify(Notification("پشتیبان‌گیری", message, severity=severity, source="backup"))

    def export_backup(self) -> None:
        try:
            path = self.ctx.backup.export_to(self.ctx.config.download_dir)
        except (StoreError, OSError) as exc:
            logger.warning("[backup] export failed: %s", exc)
            self._toast("خطا در تهیه نسخه پشتیبان", "error")
            return
        self._toast(f"نسخه پشتیبان ذخیره شد: {path.name}")

    def _choose_import(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "انتخاب فایل پشتیبان", "", "JSON (*.json)")
        if not path:
            return
        answer = QMessageBox.question(
            self, "بازیابی اطلاعات", "تمام اطلاعات فعلی حذف و با فایل پشتیبان جایگزین می‌شود. ادامه می‌دهید؟"
        )
        if answer == QMessageBox.Yes:
            self.import_backup(path)

    def import_backup(self, path: str) -> bool:
        try:
            self.ctx.backup.import_file(path)
        except (ValueError, OSError, StoreError) as exc:
            logger.warning("[backup] import of %s failed: %s", path, exc)
            self._toast("فایل پشتیبان نامعتبر است", "error")
            return False
        self._toast("اطلاعات با موفقیت بازیابی شد")
        self.ctx.load_template()
        self.ctx.set_template(self.ctx.template)
        self.restored.emit()
        return True
