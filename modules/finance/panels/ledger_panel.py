"""Accounting tab: per-client charges and payments."""

from __future__ import annotations

import logging
from typing import List, Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QAbstractItemView,
    QComboBox,
    QFormLayout,
    QFrame,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from modules.clients.models.schemas import ClientRead
from modules.finance.models.schemas import TransactionCreate, TransactionRead, TransactionUpdate
from notifications.models import Notification
from utils.state import AppContext

logger = logging.getLogger(__name__)

_TYPES = (("بدهی (شارژ)", "charge"), ("پرداخت", "payment"))


class _TotalCard(QFrame):
    def __init__(self, label: str, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setFrameShape(QFrame.StyledPanel)
        self.value_label = QLabel("0")
        self.value_label.setStyleSheet("font-size: 18px; font-weight: 900;")
        lay = QVBoxLayout(self)
        lay.setContentsMargins(12, 8, 12, 10)
        lay.addWidget(self.value_label)
        lay.addWidget(QLabel(label))

    def set_value(self, value: int) -> None:
        self.value_label.setText(f"{value:,}")


class LedgerPanel(QWidget):
    def __init__(self, ctx: AppContext, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.ctx = ctx
        self.client: Optional[ClientRead] = None
        self._entries: List[TransactionRead] = []
        self._editing_id: Optional[str] = None
        self.setLayoutDirection(Qt.RightToLeft)

        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("جستجوی مشتری...")
        self.client_list = QListWidget()
        left = QVBoxLayout()
        left.addWidget(self.search_edit)
        left.addWidget(self.client_list, 1)

        self.title = QLabel("مشتری را انتخاب کنید")
        self.title.setStyleSheet("font-size: 20px; font-weight: 900;")
        self.card_charges = _TotalCard("مجموع بدهی")
        self.card_payments = _TotalCard("مجموع پرداخت")
        self.card_balance = _TotalCard("مانده حساب")
        cards = QHBoxLayout()
        for card in (self.card_charges, self.card_payments, self.card_balance):
            cards.addWidget(card)

        self.table = QTableWidget(0, 4)
        self.table.setHorizontalHeaderLabels(["تاریخ", "نوع", "مبلغ", "شرح"])
        self.table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self.table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.table.horizontalHeader().setStretchLastSection(True)

        self.type_combo = QComboBox()
        for text, value in _TYPES:
            self.type_combo.addItem(text, value)
        self.amount_spin = QSpinBox()
        self.amount_spin.setRange(0, 2_000_000_000)
        self.description_edit = QLineEdit()
        self.btn_save = QPushButton("ثبت تراکنش")
        self.btn_edit = QPushButton("ویرایش")
        self.btn_delete = QPushButton("حذف")
        form_box = QGroupBox("تراکنش")
        form = QFormLayout(form_box)
        form.addRow("نوع", self.type_combo)
        form.addRow("مبلغ", self.amount_spin)
        form.addRow("شرح", self.description_edit)
        row = QHBoxLayout()
        row.addWidget(self.btn_save)
        row.addWidget(self.btn_edit)
        row.addWidget(self.btn_delete)
        form.addRow(row)

        right = QVBoxLayout()
        right.addWidget(self.title)
        right.addLayout(cards)
        right.addWidget(self.table, 1)
        right.addWidget(form_box)

        layout = QHBoxLayout(self)
        layout.addLayout(left, 1)
        layout.addLayout(right, 3)

        self.search_edit.textChanged.connect(self.refresh_clients)
        self.client_list.itemClicked.connect(self._on_client_clicked)
        self.btn_save.clicked.connect(self._save)
        self.btn_edit.clicked.connect(self._begin_edit)
        self.btn_delete.clicked.connect(self._delete)

    # ------------------------------------------------------------------
    def refresh_clients(self) -> None:
        term = self.search_edit.text()
        clients = self.ctx.clients.search(term) if term.strip() else self.ctx.clients.list()
        self.client_list.clear()
        for client in clients:
            item = QListWidgetItem(f"{client.name}  |  {client.tazkira}")
            item.setData(Qt.UserRole, client)
            self.client_list.addItem(item)

    def _on_client_clicked(self, item: QListWidgetItem) -> None:
        self.select_client(item.data(Qt.UserRole))

    def select_client(self, client: ClientRead) -> None:
        self.client = client
        self.title.setText(client.name)
        self._editing_id = None
        self.refresh_entries()

    def refresh_entries(self) -> None:
        if self.client is None:
            return
        self._entries = self.ctx.ledger.list_for_client(self.client.id)
        totals = self.ctx.ledger.totals(self.client.id)
        self.card_charges.set_value(totals.charges)
        self.card_payments.set_value(totals.payments)
        self.card_balance.set_value(totals.balance)
        self.table.setRowCount(len(self._entries))
        labels = {value: text for text, value in _TYPES}
        for row, entry in enumerate(self._entries):
            values = [
                entry.created_at.strftime("%Y-%m-%d"),
                labels.get(entry.type, entry.type),
                f"{entry.amount:,}",
                entry.description,
            ]
            for col, value in enumerate(values):
                self.table.setItem(row, col, QTableWidgetItem(value))

    def _selected_entry(self) -> Optional[TransactionRead]:
        row = self.table.currentRow()
        return self._entries[row] if 0 <= row < len(self._entries) else None

    # ------------------------------------------------------------------
    def _save(self) -> None:
        if self.client is None:
            return
        if self.amount_spin.value() <= 0:
            self.ctx.notify(Notification("امور مالی", "مبلغ باید بیشتر از صفر باشد", severity="warning"))
            return
        fields = dict(
            type=self.type_combo.currentData(),
            amount=self.amount_spin.value(),
            description=self.description_edit.text().strip(),
        )
        if self._editing_id is None:
            ok = self.ctx.ledger.record(TransactionCreate(client_id=self.client.id, **fields))
        else:
            ok = self.ctx.ledger.record(TransactionUpdate(**fields), self._editing_id)
        if ok:
            self._editing_id = None
            self.amount_spin.setValue(0)
            self.description_edit.clear()
            self.btn_save.setText("ثبت تراکنش")
            self.refresh_entries()

    def _begin_edit(self) -> None:
        entry = self._selected_entry()
        if entry is None:
            return
        self._editing_id = entry.id
        self.type_combo.setCurrentIndex(self.type_combo.findData(entry.type))
        self.amount_spin.setValue(entry.amount)
        self.description_edit.setText(entry.description)
        self.btn_save.setText("ذخیره تغییرات")

    def _delete(self) -> None:
        entry = self._selected_entry()
        if entry is None:
            return
        if QMessageBox.question(self, "حذف تراکنش", "آیا از حذف این تراکنش اطمینان دارید؟") != QMessageBox.Yes:
            return
        self.ctx.ledger.delete(entry.id)
        self.ctx.notify(Notification("امور مالی", "تراکنش حذف شد", severity="success"))
        self.refresh_entries()
