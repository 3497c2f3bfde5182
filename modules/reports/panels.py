"""Reports tab."""

from __future__ import annotations

from PySide6.QtCore import QDate, Qt
from PySide6.QtWidgets import (
    QComboBox,
    QDateEdit,
    QFrame,
    QHBoxLayout,
    QLabel,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from modules.reports.services import ContractReport
from utils.state import AppContext

_RANGES = (("امروز", "today"), ("هفته اخیر", "week"), ("ماه اخیر", "month"), ("سال اخیر", "year"), ("بازه دلخواه", "custom"))
_KINDS = (("همه", "all"), ("اصلی", "main"), ("تمدیدی", "extended"))


class _StatCard(QFrame):
    def __init__(self, label: str, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setFrameShape(QFrame.StyledPanel)
        self.value_label = QLabel("0")
        self.value_label.setStyleSheet("font-size: 22px; font-weight: 900;")
        lay = QVBoxLayout(self)
        lay.addWidget(self.value_label)
        lay.addWidget(QLabel(label))

    def set_value(self, value: int) -> None:
        self.value_label.setText(str(value))


class ReportsPanel(QWidget):
    def __init__(self, ctx: AppContext, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.ctx = ctx
        self.report = ContractReport()
        self.setLayoutDirection(Qt.RightToLeft)

        self.range_combo = QComboBox()
        for text, value in _RANGES:
            self.range_combo.addItem(text, value)
        self.range_combo.setCurrentIndex(self.range_combo.findData("month"))
        self.kind_combo = QComboBox()
        for text, value in _KINDS:
            self.kind_combo.addItem(text, value)
        today = QDate.currentDate()
        self.start_edit = QDateEdit(today.addMonths(-1))
        self.end_edit = QDateEdit(today)
        for edit in (self.start_edit, self.end_edit):
            edit.setCalendarPopup(True)
            edit.setDisplayFormat("yyyy/MM/dd")

        filters = QHBoxLayout()
        filters.addWidget(self.range_combo)
        filters.addWidget(self.kind_combo)
        filters.addWidget(QLabel("از"))
        filters.addWidget(self.start_edit)
        filters.addWidget(QLabel("تا"))
        filters.addWidget(self.end_edit)
        filters.addStretch(1)

        self.card_total = _StatCard("کل قراردادها")
        self.card_main = _StatCard("قرارداد اصلی")
        self.card_ext = _StatCard("تمدیدی")
        cards = QHBoxLayout()
        for card in (self.card_total, self.card_main, self.card_ext):
            cards.addWidget(card)

        self.table = QTableWidget(0, 4)
        self.table.setHorizontalHeaderLabels(["مشتری", "پلاک", "تاریخ ثبت", "نوع"])
        self.table.horizontalHeader().setStretchLastSection(True)

        layout = QVBoxLayout(self)
        layout.addLayout(filters)
        layout.addLayout(cards)
        layout.addWidget(self.table, 1)

        for signal in (
            self.range_combo.currentIndexChanged,
            self.kind_combo.currentIndexChanged,
            self.start_edit.dateChanged,
            self.end_edit.dateChanged,
        ):
            signal.connect(self.refresh)
        self._sync_custom()

    def _sync_custom(self) -> None:
        custom = self.range_combo.currentData() == "custom"
        self.start_edit.setEnabled(custom)
        self.end_edit.setEnabled(custom)

    def refresh(self) -> None:
        self._sync_custom()
        quick = self.range_combo.currentData()
        start = self.start_edit.date().toPython() if quick == "custom" else None
        end = self.end_edit.date().toPython() if quick == "custom" else None
        self.report = self.ctx.reports.contracts_report(quick, kind=self.kind_combo.currentData(), start=start, end=end)
        self.card_total.set_value(self.report.total)
        self.card_main.set_value(self.report.main_count)
        self.card_ext.set_value(self.report.ext_count)
        self.table.setRowCount(self.report.total)
        for row, contract in enumerate(self.report.contracts):
            values = [
                contract.client_name,
                contract.plate,
                contract.timestamp.strftime("%Y-%m-%d"),
                "تمدیدی" if contract.is_extended else "اصلی",
            ]
            for col, value in enumerate(values):
                self.table.setItem(row, col, QTableWidgetItem(value))
