"""User and role administration."""

from __future__ import annotations

import logging
from typing import List, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QComboBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)
from pydantic import ValidationError

from modules._infra.repository import StoreError
from modules.users.models.schemas import RoleRead, UserRead, UserUpsert
from modules.users.permissions import ADMIN_USERNAME, PERMISSIONS, SYSTEM_ROLE_IDS
from notifications.models import Notification
from utils.state import AppContext

logger = logging.getLogger(__name__)


class UsersPanel(QWidget):
    def __init__(self, ctx: AppContext, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.ctx = ctx
        self._users: List[UserRead] = []
        self._roles: List[RoleRead] = []
        self._editing: Optional[UserRead] = None
        self.setLayoutDirection(Qt.RightToLeft)

        # users -------------------------------------------------------------
        self.user_list = QListWidget()
        self.username_edit = QLineEdit()
        self.password_edit = QLineEdit()
        self.role_combo = QComboBox()
        self.btn_save_user = QPushButton("ذخیره کاربر")
        self.btn_new_user = QPushButton("کاربر جدید")
        self.btn_delete_user = QPushButton("حذف کاربر")
        user_box = QGroupBox("کاربران")
        user_form = QFormLayout()
        user_form.addRow("نام کاربری", self.username_edit)
        user_form.addRow("رمز عبور", self.password_edit)
        user_form.addRow("نقش", self.role_combo)
        user_buttons = QHBoxLayout()
        for btn in (self.btn_save_user, self.btn_new_user, self.btn_delete_user):
            user_buttons.addWidget(btn)
        user_layout = QVBoxLayout(user_box)
        user_layout.addWidget(self.user_list, 1)
        user_layout.addLayout(user_form)
        user_layout.addLayout(user_buttons)

        # roles -------------------------------------------------------------
        self.role_list = QListWidget()
        self.role_name_edit = QLineEdit()
        self.perm_tree = QTreeWidget()
        self.perm_tree.setHeaderHidden(True)
        self._perm_items: dict[str, QTreeWidgetItem] = {}
        for perm in PERMISSIONS:
            parent_item = self._perm_items.get(perm.parent) if perm.parent else None
            item = QTreeWidgetItem(parent_item or self.perm_tree, [perm.label])
            item.setData(0, Qt.UserRole, perm.id)
            item.setCheckState(0, Qt.Unchecked)
            self._perm_items[perm.id] = item
        self.perm_tree.expandAll()
        self.btn_create_role = QPushButton("ایجاد نقش")
        self.btn_delete_role = QPushButton("حذف نقش")
        role_box = QGroupBox("نقش‌ها و دسترسی‌ها")
        role_layout = QVBoxLayout(role_box)
        role_layout.addWidget(self.role_list)
        role_layout.addWidget(self.role_name_edit)
        role_layout.addWidget(self.perm_tree, 1)
        role_buttons = QHBoxLayout()
        role_buttons.addWidget(self.btn_create_role)
        role_buttons.addWidget(self.btn_delete_role)
        role_layout.addLayout(role_buttons)

        layout = QHBoxLayout(self)
        layout.addWidget(user_box, 1)
        layout.addWidget(role_box, 1)

        self.user_list.itemClicked.connect(self._on_user_clicked)
        self.btn_new_user.clicked.connect(self._clear_user_form)
        self.btn_save_user.clicked.connect(self._save_user)
        self.btn_delete_user.clicked.connect(self._delete_user)
        self.role_list.itemClicked.connect(self._on_role_clicked)
        self.btn_create_role.clicked.connect(self._create_role)
        self.btn_delete_role.clicked.connect(self._delete_role)

    def _toast(self, message: str, severity: str = "success") -> None:
        self.ctx.notify(Notification("کاربران", message, severity=severity, source="users"))

    # ------------------------------------------------------------------
    def refresh(self) -> None:
        self._users = self.ctx.users.list_users()
        self._roles = self.ctx.users.list_roles()
        self.user_list.clear()
        role_names = {r.id: r.name for r in self._roles}
        for user in self._users:
            item = QListWidgetItem(f"{user.username}  ({role_names.get(user.role_id or '', '---')})")
            item.setData(Qt.UserRole, user)
            self.user_list.addItem(item)
        self.role_list.clear()
        self.role_combo.clear()
        for role in self._roles:
            item = QListWidgetItem(role.name)
            item.setData(Qt.UserRole, role)
            self.role_list.addItem(item)
            self.role_combo.addItem(role.name, role.id)

    # -- users ------------------------------------------------------------
    def _on_user_clicked(self, item: QListWidgetItem) -> None:
        user: UserRead = item.data(Qt.UserRole)
        self._editing = user
        self.username_edit.setText(user.username)
        self.username_edit.setReadOnly(user.username == ADMIN_USERNAME)
        self.password_edit.setText(user.password)
        self.role_combo.setCurrentIndex(max(0, self.role_combo.findData(user.role_id)))

    def _clear_user_form(self) -> None:
        self._editing = None
        self.username_edit.setReadOnly(False)
        self.username_edit.clear()
        self.password_edit.clear()

    def _save_user(self) -> None:
        try:
            data = UserUpsert(
                username=self.username_edit.text().strip(),
                password=self.password_edit.text(),
                role_id=self.role_combo.currentData(),
            )
        except ValidationError:
            self._toast("نام کاربری و رمز عبور الزامی است", "warning")
            return
        try:
            self.ctx.users.save_user(data, self._editing.id if self._editing else None)
        except ValueError as exc:
            logger.info("[users] save refused: %s", exc)
            self._toast("نام کاربری تکراری است یا قابل تغییر نیست", "warning")
            return
        self._toast("کاربر ذخیره شد")
        self._clear_user_form()
        self.refresh()

    def _delete_user(self) -> None:
        item = self.user_list.currentItem()
        if item is None:
            return
        try:
            self.ctx.users.delete_user(item.data(Qt.UserRole).id)
        except ValueError:
            self._toast("حساب مدیر قابل حذف نیست", "warning")
            return
        self._toast("کاربر حذف شد")
        self._clear_user_form()
        self.refresh()

    # -- roles ------------------------------------------------------------
    def _on_role_clicked(self, item: QListWidgetItem) -> None:
        role: RoleRead = item.data(Qt.UserRole)
        self.role_name_edit.setText(role.name)
        for perm_id, tree_item in self._perm_items.items():
            tree_item.setCheckState(0, Qt.Checked if perm_id in role.perms else Qt.Unchecked)
        self.btn_delete_role.setEnabled(role.id not in SYSTEM_ROLE_IDS)

    def _checked_perms(self) -> List[str]:
        return [pid for pid, item in self._perm_items.items() if item.checkState(0) == Qt.Checked]

    def _create_role(self) -> None:
        try:
            self.ctx.users.create_role(self.role_name_edit.text(), self._checked_perms())
        except (ValueError, StoreError) as exc:
            logger.info("[users] role not created: %s", exc)
            self._toast("نام نقش الزامی است", "warning")
            return
        self._toast("نقش جدید ایجاد شد")
        self.role_name_edit.clear()
        self.refresh()

    def _delete_role(self) -> None:
        item = self.role_list.currentItem()
        if item is None:
            return
        try:
            self.ctx.users.delete_role(item.data(Qt.UserRole).id)
        except ValueError:
            self._toast("نقش‌های سیستمی قابل حذف نیستند", "warning")
            return
        self._toast("نقش حذف شد")
        self.refresh()
