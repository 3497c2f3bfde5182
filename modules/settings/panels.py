"""Settings tab: sidebar sections gated by permission."""

from __future__ import annotations

from typing import Callable, List, Tuple

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from modules.backup.panels import BackupPanel
from modules.contracts.ui.designer_panel import DesignerPanel
from modules.users.panels import UsersPanel
from notifications.models import Notification
from utils.state import AppContext

SectionDef = Tuple[str, str, Callable[[AppContext], QWidget]]

SECTIONS: List[SectionDef] = [
    ("settings_designer", "بوم طراحی قرارداد", DesignerPanel),
    ("settings_users", "کاربران و دسترسی‌ها", UsersPanel),
    ("settings_backup", "پشتیبان‌گیری", BackupPanel),
]


class PasscodeGate(QWidget):
    """Lock screen in front of the designer until the passcode is entered."""

    def __init__(self, ctx: AppContext, on_unlock: Callable[[], None], parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.ctx = ctx
        self._on_unlock = on_unlock
        self.passcode_edit = QLineEdit()
        self.passcode_edit.setEchoMode(QLineEdit.Password)
        self.passcode_edit.setPlaceholderText("رمز ورود به بخش طراحی")
        self.btn_unlock = QPushButton("ورود")
        layout = QVBoxLayout(self)
        layout.addStretch(1)
        layout.addWidget(QLabel("این بخش محافظت شده است"), 0, Qt.AlignHCenter)
        layout.addWidget(self.passcode_edit, 0, Qt.AlignHCenter)
        layout.addWidget(self.btn_unlock, 0, Qt.AlignHCenter)
        layout.addStretch(1)
        self.btn_unlock.clicked.connect(self.try_unlock)
        self.passcode_edit.returnPressed.connect(self.try_unlock)

    def try_unlock(self) -> bool:
        if self.passcode_edit.text() == self.ctx.config.design_passcode:
            self._on_unlock()
            return True
        self.passcode_edit.clear()
        self.ctx.notify(Notification("تنظیمات", "رمز اشتباه است", severity="warning", source="settings"))
        return False


class GatedSection(QStackedWidget):
    def __init__(self, ctx: AppContext, inner: QWidget, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.inner = inner
        self.gate = PasscodeGate(ctx, lambda: self.setCurrentIndex(1))
        self.addWidget(self.gate)
        self.addWidget(inner)

    @property
    def unlocked(self) -> bool:
        return self.currentIndex() == 1


class SettingsPanel(QWidget):
    def __init__(self, ctx: AppContext, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.ctx = ctx
        self.setLayoutDirection(Qt.RightToLeft)
        self.section_list = QListWidget()
        self.section_list.setMaximumWidth(220)
        self.stack = QStackedWidget()
        self.sections: dict[str, QWidget] = {}

        access = ctx.access
        for perm, title, factory in SECTIONS:
            if access is None or not access.has(perm):
                continue
            page = factory(ctx)
            if perm == "settings_designer" and not access.is_admin:
                page = GatedSection(ctx, page)
            self.sections[perm] = page
            self.section_list.addItem(title)
            self.stack.addWidget(page)

        layout = QHBoxLayout(self)
        layout.addWidget(self.section_list)
        layout.addWidget(self.stack, 1)
        self.section_list.currentRowChanged.connect(self._on_section)
        if self.section_list.count():
            self.section_list.setCurrentRow(0)

    def _on_section(self, row: int) -> None:
        self.stack.setCurrentIndex(row)
        page = self.stack.currentWidget()
        inner = getattr(page, "inner", page)
        if hasattr(inner, "refresh"):
            inner.refresh()
