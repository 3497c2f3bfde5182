"""Archive tab: stored contracts with print, export, edit, assign, delete."""

from __future__ import annotations

import logging
from typing import List, Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QAbstractItemView,
    QComboBox,
    QHBoxLayout,
    QInputDialog,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from modules._infra.repository import StoreError
from modules.contracts.models.schemas import ContractRead
from modules.contracts.services.form_fill import DEFAULT_FONT, FONT_KEY
from modules.contracts.ui.output import ContractOutput
from notifications.models import Notification
from utils.state import AppContext

logger = logging.getLogger(__name__)

_FILTERS = (("همه", "all"), ("اصلی", "main"), ("تمدیدی", "extended"))
_HEADERS = ["مشتری", "پلاک", "تاریخ ثبت", "انقضا", "نوع", "مسئول"]


class ArchivePanel(QWidget):
    editRequested = Signal(object)

    def __init__(self, ctx: AppContext, output: ContractOutput, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.ctx = ctx
        self.output = output
        self._rows: List[ContractRead] = []
        self._usernames: dict[str, str] = {}
        self.setLayoutDirection(Qt.RightToLeft)
        access = ctx.access

        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("جستجو در بایگانی...")
        self.filter_combo = QComboBox()
        for text, value in _FILTERS:
            self.filter_combo.addItem(text, value)
        self.btn_expired = QPushButton("منقضی شده")
        self.btn_expired.setCheckable(True)

        self.table = QTableWidget(0, len(_HEADERS))
        self.table.setHorizontalHeaderLabels(_HEADERS)
        self.table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.table.setSelectionMode(QAbstractItemView.SingleSelection)
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.table.horizontalHeader().setStretchLastSection(True)

        self.btn_edit = QPushButton("ویرایش")
        self.btn_print = QPushButton("چاپ")
        self.btn_export = QPushButton("PDF")
        self.btn_share = QPushButton("ارسال")
        self.btn_assign = QPushButton("واگذاری")
        self.btn_delete = QPushButton("حذف")
        self.btn_edit.setVisible(bool(access and access.can_edit_contracts))
        for btn in (self.btn_print, self.btn_export, self.btn_share):
            btn.setVisible(bool(access and access.can_print))
        self.btn_assign.setVisible(bool(access and access.is_admin))
        self.btn_delete.setVisible(bool(access and access.can_delete_contracts))

        top = QHBoxLayout()
        top.addWidget(self.search_edit, 1)
        top.addWidget(self.filter_combo)
        top.addWidget(self.btn_expired)
        actions = QHBoxLayout()
        for btn in (self.btn_edit, self.btn_print, self.btn_export, self.btn_share, self.btn_assign, self.btn_delete):
            actions.addWidget(btn)
        actions.addStretch(1)

        layout = QVBoxLayout(self)
        layout.addLayout(top)
        layout.addWidget(self.table, 1)
        layout.addLayout(actions)

        self.search_edit.textChanged.connect(self.refresh)
        self.filter_combo.currentIndexChanged.connect(self.refresh)
        self.btn_expired.toggled.connect(self.refresh)
        self.btn_edit.clicked.connect(self._edit)
        self.btn_print.clicked.connect(self._print)
        self.btn_export.clicked.connect(lambda: self._export(share=False))
        self.btn_share.clicked.connect(lambda: self._export(share=True))
        self.btn_assign.clicked.connect(self._assign)
        self.btn_delete.clicked.connect(self._delete)

    # ------------------------------------------------------------------
    def refresh(self) -> None:
        user_id = self.ctx.current_user.id if self.ctx.current_user else None
        try:
            self._rows = self.ctx.contracts.list(
                kind=self.filter_combo.currentData(),
                search=self.search_edit.text(),
                access=self.ctx.access,
                user_id=user_id,
            )
            self._usernames = {u.id: u.username for u in self.ctx.users.list_users()}
            expired_ids = {c.id for c in self.ctx.contracts.expired()}
        except StoreError as exc:
            logger.warning("[archive] listing contracts failed: %s", exc)
            self.ctx.notify(Notification("بایگانی", "بارگذاری بایگانی ناموفق بود", severity="error"))
            return
        overdue = sum(1 for c in self._rows if c.id in expired_ids)
        self.btn_expired.setText(f"منقضی شده ({overdue})" if overdue else "منقضی شده")
        if self.btn_expired.isChecked():
            self._rows = [c for c in self._rows if c.id in expired_ids]
        self.table.setRowCount(len(self._rows))
        for row, contract in enumerate(self._rows):
            values = [
                contract.client_name,
                contract.plate,
                contract.timestamp.strftime("%Y-%m-%d %H:%M"),
                contract.expiry_date.strftime("%Y-%m-%d") if contract.expiry_date else "---",
                "تمدیدی" if contract.is_extended else "اصلی",
                self._usernames.get(contract.assigned_to or "", "مدیر"),
            ]
            for col, value in enumerate(values):
                self.table.setItem(row, col, QTableWidgetItem(value))

    def selected(self) -> Optional[ContractRead]:
        row = self.table.currentRow()
        if 0 <= row < len(self._rows):
            return self._rows[row]
        return None

    def _font(self) -> str:
        return self.ctx.settings.get(FONT_KEY, DEFAULT_FONT) or DEFAULT_FONT

    # ------------------------------------------------------------------
    def _edit(self) -> None:
        contract = self.selected()
        if contract is not None:
            self.editRequested.emit(contract)

    def _print(self) -> None:
        contract = self.selected()
        if contract is not None:
            self.output.print_contract(self, self.ctx.template, contract.form_data, self._font())

    def _export(self, *, share: bool) -> None:
        contract = self.selected()
        if contract is not None:
            self.output.export_contract(
                self.ctx.template, contract.form_data, contract.client_name, contract.plate, self._font(), share=share
            )

    def _assign(self) -> None:
        contract = self.selected()
        if contract is None:
            return
        users = self.ctx.users.list_users()
        names = ["مدیر (بدون واگذاری)"] + [u.username for u in users]
        choice, ok = QInputDialog.getItem(self, "واگذاری قرارداد", "کاربر مسئول", names, 0, False)
        if not ok:
            return
        index = names.index(choice)
        user_id = None if index == 0 else users[index - 1].id
        self.ctx.contracts.assign(contract.id, user_id)
        self.ctx.notify(Notification("بایگانی", "مسئول قرارداد تغییر کرد", severity="success"))
        self.refresh()

    def _delete(self) -> None:
        contract = self.selected()
        if contract is None:
            return
        if QMessageBox.question(self, "حذف قرارداد", "آیا از حذف این سند اطمینان دارید؟") != QMessageBox.Yes:
            return
        self.ctx.contracts.delete(contract.id)
        self.ctx.notify(Notification("بایگانی", "سند با موفقیت حذف شد", severity="success"))
        self.refresh()
