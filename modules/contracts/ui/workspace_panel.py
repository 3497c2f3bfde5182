"""Workspace tab: pick a client, fill the contract, save/print/export."""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QEvent, QObject, Qt, Signal
from PySide6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from modules._infra.repository import StoreError
from modules.clients.models.schemas import ClientRead
from modules.clients.services import ClientInUseError
from modules.clients.ui.client_dialog import ClientDialog
from modules.contracts.models import Template
from modules.contracts.models.schemas import ContractRead
from modules.contracts.services.contracts import DEFAULT_EXPIRY_MONTHS, EXPIRY_CHOICES
from modules.contracts.services.form_fill import FONT_OPTIONS, FormFillSession
from modules.contracts.ui.form_fill_view import FormFillView
from modules.contracts.ui.output import ContractOutput
from notifications.models import Notification
from utils.state import AppContext

logger = logging.getLogger(__name__)


class ClientPicker(QWidget):
    """Client search with create/edit/delete for permitted users."""

    clientChosen = Signal(object)

    def __init__(self, ctx: AppContext, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.ctx = ctx
        access = ctx.access
        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("جستجوی نام یا شماره پلاک...")
        self.search_edit.setEnabled(bool(access and access.can_search))
        self.results = QListWidget()
        self.btn_new = QPushButton("پرونده جدید")
        self.btn_new.setVisible(bool(access and access.can_create))
        self.btn_edit = QPushButton("ویرایش مشتری")
        self.btn_delete = QPushButton("حذف مشتری")
        for btn in (self.btn_edit, self.btn_delete):
            btn.setVisible(bool(access and access.is_admin))

        buttons = QHBoxLayout()
        buttons.addWidget(self.btn_new)
        buttons.addStretch(1)
        buttons.addWidget(self.btn_edit)
        buttons.addWidget(self.btn_delete)

        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("میز کار قراردادها"))
        layout.addWidget(self.search_edit)
        layout.addWidget(self.results, 1)
        layout.addLayout(buttons)

        self.search_edit.textChanged.connect(self.refresh)
        self.results.itemActivated.connect(lambda item: self.clientChosen.emit(item.data(Qt.UserRole)))
        self.btn_new.clicked.connect(self._create)
        self.btn_edit.clicked.connect(self._edit)
        self.btn_delete.clicked.connect(self._delete)

    def refresh(self) -> None:
        self.results.clear()
        try:
            matches = self.ctx.clients.search(self.search_edit.text())
        except StoreError as exc:
            logger.warning("[workspace] client search failed: %s", exc)
            return
        for client in matches:
            item = QListWidgetItem(f"{client.name}  |  {client.tazkira}")
            item.setData(Qt.UserRole, client)
            self.results.addItem(item)

    def _current(self) -> Optional[ClientRead]:
        item = self.results.currentItem()
        return item.data(Qt.UserRole) if item is not None else None

    def _create(self) -> None:
        if not (self.ctx.access and self.ctx.access.can_create):
            self.ctx.notify(Notification("مشتری", "شما دسترسی ایجاد پرونده ندارید", severity="warning"))
            return
        dialog = ClientDialog(self.ctx.clients, parent=self)
        if not dialog.exec() or dialog.data is None:
            return
        try:
            client = self.ctx.clients.create(dialog.data)
        except ValueError:
            self.ctx.notify(Notification("مشتری", "شماره پلاک تکراری است", severity="warning"))
            return
        self.ctx.notify(Notification("مشتری", "پرونده دیجیتال مشتری ایجاد شد", severity="success"))
        self.clientChosen.emit(client)

    def _edit(self) -> None:
        client = self._current()
        if client is None:
            return
        dialog = ClientDialog(self.ctx.clients, client, parent=self)
        if dialog.exec() and dialog.data is not None:
            self.ctx.clients.update(client.id, dialog.data)
            self.ctx.notify(Notification("مشتری", "اطلاعات مشتری بروزرسانی شد", severity="success"))
            self.refresh()

    def _delete(self) -> None:
        client = self._current()
        if client is None:
            return
        answer = QMessageBox.question(self, "حذف مشتری", f"آیا از حذف پرونده {client.name} اطمینان دارید؟")
        if answer != QMessageBox.Yes:
            return
        try:
            self.ctx.clients.delete(client.id)
        except ClientInUseError as exc:
            message = (
                "خطا: این مشتری دارای قرارداد ثبت شده است و حذف نمی‌شود"
                if "contracts" in str(exc)
                else "خطا: این مشتری دارای سوابق مالی است و حذف نمی‌شود"
            )
            self.ctx.notify(Notification("مشتری", message, severity="error"))
            return
        self.ctx.notify(Notification("مشتری", "پرونده مشتری با موفقیت حذف گردید", severity="success"))
        self.refresh()


class WorkspacePanel(QWidget):
    contractSaved = Signal()

    def __init__(self, ctx: AppContext, output: ContractOutput, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.ctx = ctx
        self.output = output
        self.client: Optional[ClientRead] = None
        self.session = FormFillSession(ctx.template, ctx.settings, ctx.notify)
        self.setLayoutDirection(Qt.RightToLeft)

        self.picker = ClientPicker(ctx)
        self.picker.clientChosen.connect(self.open_client)

        # editor toolbar ---------------------------------------------------
        self.client_label = QLabel("")
        self.page_toggles: list[QCheckBox] = []
        self.page_bar = QHBoxLayout()
        self.btn_zoom_out = QPushButton("−")
        self.btn_zoom_in = QPushButton("+")
        self.zoom_label = QLabel("")
        self.font_combo = QComboBox()
        for family, label in FONT_OPTIONS:
            self.font_combo.addItem(label, family)
        self.font_combo.setCurrentIndex(max(0, self.font_combo.findData(self.session.active_font)))
        self.expiry_combo = QComboBox()
        for months in EXPIRY_CHOICES:
            self.expiry_combo.addItem(f"{months} ماهه", months)
        self.expiry_combo.setCurrentIndex(self.expiry_combo.findData(DEFAULT_EXPIRY_MONTHS))
        self.btn_save_preset = QPushButton("ذخیره پیش‌نویس")
        self.btn_load_preset = QPushButton("فراخوانی پیش‌نویس")
        self.btn_save = QPushButton("ثبت قرارداد")
        self.btn_extend = QPushButton("تمدید")
        self.btn_print = QPushButton("چاپ")
        self.btn_export = QPushButton("PDF")
        self.btn_share = QPushButton("ارسال")
        self.btn_close = QPushButton("بستن")

        toolbar = QHBoxLayout()
        toolbar.addWidget(self.client_label)
        toolbar.addLayout(self.page_bar)
        toolbar.addStretch(1)
        for w in (
            self.btn_zoom_out,
            self.zoom_label,
            self.btn_zoom_in,
            self.font_combo,
            self.expiry_combo,
            self.btn_save_preset,
            self.btn_load_preset,
            self.btn_save,
            self.btn_extend,
            self.btn_print,
            self.btn_export,
            self.btn_share,
            self.btn_close,
        ):
            toolbar.addWidget(w)

        self.view = FormFillView(self.session, ctx.cache, self.session.active_font)
        self.scroll = QScrollArea()
        self.scroll.setWidgetResizable(True)
        self.scroll.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOn)
        self.scroll.setWidget(self.view)

        editor = QWidget()
        editor_layout = QVBoxLayout(editor)
        editor_layout.addLayout(toolbar)
        editor_layout.addWidget(self.scroll, 1)

        self.stack = QStackedWidget()
        self.stack.addWidget(self.picker)
        self.stack.addWidget(editor)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.stack)

        self.btn_zoom_in.clicked.connect(lambda: self._zoom(self.session.zoom_in()))
        self.btn_zoom_out.clicked.connect(lambda: self._zoom(self.session.zoom_out()))
        self.font_combo.currentIndexChanged.connect(self._on_font_changed)
        self.btn_save_preset.clicked.connect(self.session.save_preset)
        self.btn_load_preset.clicked.connect(self._load_preset)
        self.btn_save.clicked.connect(lambda: self.save(is_extension=False))
        self.btn_extend.clicked.connect(lambda: self.save(is_extension=True))
        self.btn_print.clicked.connect(self._print)
        self.btn_export.clicked.connect(lambda: self._export(share=False))
        self.btn_share.clicked.connect(lambda: self._export(share=True))
        self.btn_close.clicked.connect(self.reset)
        ctx.on_template_changed(self._on_template_changed)
        self.scroll.viewport().installEventFilter(self)

    # -- entry points -----------------------------------------------------
    def open_client(self, client: ClientRead) -> None:
        self.client = client
        self.session.start_new(self.ctx.contracts.count)
        self._show_editor()

    def open_contract(self, contract: ContractRead) -> bool:
        client = self.ctx.clients.get(contract.client_id)
        if client is None:
            self.ctx.notify(Notification("قرارداد", "مشتری این قرارداد یافت نشد", severity="warning"))
            return False
        self.client = client
        self.session.begin_edit(contract.id, contract.form_data)
        self._show_editor()
        return True

    def reset(self) -> None:
        self.client = None
        self.session.reset()
        self.stack.setCurrentIndex(0)
        self.picker.refresh()

    # -- editor -----------------------------------------------------------
    def _show_editor(self) -> None:
        self.client_label.setText(f"{self.client.name} | {self.client.tazkira}")
        self.btn_extend.setVisible(not self.session.is_new)
        can_save = self.session.is_new and bool(self.ctx.access and self.ctx.access.can_create)
        can_save = can_save or (not self.session.is_new and bool(self.ctx.access and self.ctx.access.can_edit_contracts))
        self.btn_save.setEnabled(can_save)
        self._rebuild_page_toggles()
        self.stack.setCurrentIndex(1)
        self.session.compute_auto_zoom(self.scroll.viewport().width() or 1000)
        self.view.rebuild()
        self._zoom(self.session.zoom)

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802 - Qt override
        if watched is self.scroll.viewport() and event.type() == QEvent.Resize and self.stack.currentIndex() == 1:
            self._fit_to_width(self.scroll.viewport().width())
        return super().eventFilter(watched, event)

    def _fit_to_width(self, width: int) -> None:
        if width <= 0:
            return
        previous = self.session.zoom
        if self.session.compute_auto_zoom(width) != previous:
            self._zoom(self.session.zoom)

    def _rebuild_page_toggles(self) -> None:
        for box in self.page_toggles:
            self.page_bar.removeWidget(box)
            box.deleteLater()
        self.page_toggles = []
        for page in self.session.template.ordered_pages()[1:]:
            box = QCheckBox(f"برگ {page.page_number}")
            box.setChecked(page.page_number in self.session.visible_pages)
            box.toggled.connect(lambda _on, n=page.page_number: self._toggle_page(n))
            self.page_bar.addWidget(box)
            self.page_toggles.append(box)

    def _toggle_page(self, page_number: int) -> None:
        self.session.toggle_page(page_number)
        self.view.rebuild()

    def _zoom(self, value: float) -> None:
        self.zoom_label.setText(f"{round(value * 100)}%")
        self.view.relayout()

    def _on_font_changed(self) -> None:
        family = self.font_combo.currentData()
        self.session.set_active_font(family)
        self.view.set_font_family(family)

    def _load_preset(self) -> None:
        if self.session.load_preset():
            self.view.relayout()

    def _on_template_changed(self, template: Template) -> None:
        self.session.template = template
        if self.stack.currentIndex() == 1:
            self._rebuild_page_toggles()
            self.view.rebuild()
            self.view.relayout()

    # -- actions ----------------------------------------------------------
    def save(self, *, is_extension: bool = False) -> bool:
        if self.client is None or self.ctx.access is None or self.ctx.current_user is None:
            return False
        saved = self.ctx.contracts.submit(
            client_id=self.client.id,
            client_name=self.client.name,
            answers=self.session.answers,
            template_id=self.session.template.id,
            creator=self.ctx.access,
            creator_id=self.ctx.current_user.id,
            editing_id=self.session.editing_contract_id,
            months=self.expiry_combo.currentData(),
            is_extension=is_extension,
        )
        if saved:
            self.contractSaved.emit()
            self.reset()
        return saved

    def _plate(self) -> str:
        return self.session.value("tazkira") or (self.client.tazkira if self.client else "")

    def _print(self) -> None:
        self.output.print_contract(self, self.session.template, self.session.answers, self.session.active_font)

    def _export(self, *, share: bool) -> None:
        if self.client is None:
            return
        self.output.export_contract(
            self.session.template,
            self.session.answers,
            self.client.name,
            self._plate(),
            self.session.active_font,
            share=share,
        )
