"""Template designer panel: canvas, field list, property editor."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QButtonGroup,
    QCheckBox,
    QComboBox,
    QDoubleSpinBox,
    QFileDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPlainTextEdit,
    QPushButton,
    QScrollArea,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from modules.contracts.models import Alignment, PaperSize, Template
from modules.contracts.services.designer import TemplateDesigner
from modules.contracts.ui.designer_canvas import DesignerCanvas
from utils.state import AppContext

logger = logging.getLogger(__name__)

_ALIGN_LABELS = (("راست", Alignment.RIGHT), ("وسط", Alignment.CENTER), ("چپ", Alignment.LEFT))


class FieldPropertyEditor(QGroupBox):
    """Edits the selected field; every change goes straight to the designer."""

    def __init__(self, designer: TemplateDesigner, parent: QWidget | None = None) -> None:
        super().__init__("ویرایش المان", parent)
        self.designer = designer
        self._loading = False

        self.label_edit = QLineEdit()
        self.font_spin = QSpinBox()
        self.font_spin.setRange(6, 72)
        self.width_spin = QSpinBox()
        self.width_spin.setRange(20, 600)
        self.rotation_spin = QDoubleSpinBox()
        self.rotation_spin.setRange(-180, 180)
        self.align_combo = QComboBox()
        for text, value in _ALIGN_LABELS:
            self.align_combo.addItem(text, value.value)
        self.options_edit = QPlainTextEdit()
        self.options_edit.setFixedHeight(64)

        form = QFormLayout(self)
        form.addRow("عنوان", self.label_edit)
        form.addRow("اندازه قلم", self.font_spin)
        form.addRow("عرض", self.width_spin)
        form.addRow("چرخش", self.rotation_spin)
        form.addRow("تراز", self.align_combo)
        form.addRow("گزینه‌ها", self.options_edit)

        self.label_edit.editingFinished.connect(lambda: self._apply("label", self.label_edit.text()))
        self.font_spin.valueChanged.connect(lambda v: self._apply("font_size", v))
        self.width_spin.valueChanged.connect(lambda v: self._apply("width", v))
        self.rotation_spin.valueChanged.connect(lambda v: self._apply("rotation", v))
        self.align_combo.currentIndexChanged.connect(lambda _i: self._apply("alignment", self.align_combo.currentData()))
        self.options_edit.textChanged.connect(lambda: self._apply("options", self.options_edit.toPlainText()))
        self.load()

    def _apply(self, key: str, value: object) -> None:
        if self._loading or self.designer.selected_field_id is None:
            return
        self.designer.update_field(self.designer.selected_field_id, {key: value})

    def load(self) -> None:
        field = self.designer.selected_field
        self.setVisible(field is not None)
        if field is None:
            return
        self._loading = True
        try:
            self.label_edit.setText(field.label)
            self.font_spin.setValue(int(field.font_size))
            self.width_spin.setValue(int(field.width))
            self.rotation_spin.setValue(field.rotation)
            self.align_combo.setCurrentIndex(max(0, self.align_combo.findData(field.alignment.value)))
            self.options_edit.setVisible(field.is_dropdown)
            if field.is_dropdown and not self.options_edit.hasFocus():
                self.options_edit.setPlainText(", ".join(field.options))
        finally:
            self._loading = False


class AddFieldForm(QGroupBox):
    def __init__(self, designer: TemplateDesigner, parent: QWidget | None = None) -> None:
        super().__init__("افزودن المان جدید", parent)
        self.designer = designer
        self.label_edit = QLineEdit()
        self.width_spin = QSpinBox()
        self.width_spin.setRange(20, 600)
        self.width_spin.setValue(150)
        self.align_combo = QComboBox()
        for text, value in _ALIGN_LABELS:
            self.align_combo.addItem(text, value.value)
        self.dropdown_check = QCheckBox("فیلد انتخابی")
        self.options_edit = QPlainTextEdit()
        self.options_edit.setPlaceholderText("گزینه‌ها را با کاما یا خط جدید جدا کنید")
        self.options_edit.setFixedHeight(56)
        self.options_edit.setVisible(False)
        self.btn_add = QPushButton("افزودن به برگه")

        form = QFormLayout(self)
        form.addRow("عنوان", self.label_edit)
        form.addRow("عرض", self.width_spin)
        form.addRow("تراز", self.align_combo)
        form.addRow(self.dropdown_check)
        form.addRow(self.options_edit)
        form.addRow(self.btn_add)

        self.dropdown_check.toggled.connect(self.options_edit.setVisible)
        self.btn_add.clicked.connect(self._add)

    def _add(self) -> None:
        created = self.designer.add_field(
            self.label_edit.text(),
            width=self.width_spin.value(),
            alignment=self.align_combo.currentData(),
            is_dropdown=self.dropdown_check.isChecked(),
            options_text=self.options_edit.toPlainText(),
        )
        if created is not None:
            self.label_edit.clear()
            self.options_edit.clear()
            self.dropdown_check.setChecked(False)
            self.width_spin.setValue(150)


class DesignerPanel(QWidget):
    """Authoring surface for the contract template."""

    templateSaved = Signal()

    def __init__(self, ctx: AppContext, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.ctx = ctx
        self.designer = TemplateDesigner(ctx.template, ctx.templates, ctx.letterheads, ctx.cache, ctx.notify)
        self.designer.subscribe(self._on_template_changed)
        font = ctx.settings.get("active_font", "Vazirmatn")

        # toolbar ---------------------------------------------------------
        self.page_group = QButtonGroup(self)
        toolbar = QHBoxLayout()
        for page in self.designer.template.ordered_pages():
            btn = QPushButton(f"برگ {page.page_number}")
            btn.setCheckable(True)
            btn.setChecked(page.page_number == self.designer.active_page_number)
            self.page_group.addButton(btn, page.page_number)
            toolbar.addWidget(btn)
        self.page_group.idClicked.connect(self._on_page_clicked)
        toolbar.addStretch(1)
        self.bg_print_check = QCheckBox("سربرگ در چاپ")
        self.btn_upload = QPushButton("آپلود سربرگ")
        self.btn_clear_bg = QPushButton("حذف")
        self.paper_combo = QComboBox()
        for size in PaperSize:
            self.paper_combo.addItem(size.value, size.value)
        self.btn_save = QPushButton("ذخیره قالب")
        for w in (self.bg_print_check, self.btn_upload, self.btn_clear_bg, self.paper_combo, self.btn_save):
            toolbar.addWidget(w)

        # side column -------------------------------------------------------
        self.field_list = QListWidget()
        self.btn_remove = QPushButton("حذف المان")
        self.properties = FieldPropertyEditor(self.designer)
        self.add_form = AddFieldForm(self.designer)
        side = QVBoxLayout()
        side.addWidget(self.field_list, 1)
        side.addWidget(self.btn_remove)
        side.addWidget(self.properties)
        side.addWidget(self.add_form)
        side_widget = QWidget()
        side_widget.setLayout(side)
        side_widget.setFixedWidth(320)

        # canvas ------------------------------------------------------------
        self.canvas = DesignerCanvas(self.designer, ctx.cache, font)
        scroll = QScrollArea()
        scroll.setAlignment(Qt.AlignHCenter | Qt.AlignTop)
        scroll.setWidget(self.canvas)

        body = QHBoxLayout()
        body.addWidget(side_widget)
        body.addWidget(scroll, 1)
        layout = QVBoxLayout(self)
        layout.addLayout(toolbar)
        layout.addLayout(body, 1)

        self.canvas.fieldSelected.connect(lambda _id: self._sync_selection())
        self.canvas.selectionCleared.connect(self._sync_selection)
        self.field_list.itemClicked.connect(self._on_item_clicked)
        self.field_list.itemChanged.connect(self._on_item_changed)
        self.btn_remove.clicked.connect(self._remove_selected)
        self.bg_print_check.toggled.connect(self.designer.set_background_visible_in_print)
        self.paper_combo.currentIndexChanged.connect(lambda _i: self.designer.set_paper_size(self.paper_combo.currentData()))
        self.btn_upload.clicked.connect(self._upload)
        self.btn_clear_bg.clicked.connect(self.designer.clear_background)
        self.btn_save.clicked.connect(self._save)

        self._reload_page_controls()

    # ------------------------------------------------------------------
    def _on_template_changed(self, template: Template) -> None:
        self.ctx.set_template(template)
        self.canvas.refresh()
        self._reload_field_list()
        if not self.designer.dragging:
            self.properties.load()

    def _reload_page_controls(self) -> None:
        page = self.designer.active_page
        for w in (self.bg_print_check, self.paper_combo):
            w.blockSignals(True)
        self.bg_print_check.setChecked(page.show_background_in_print)
        self.paper_combo.setCurrentIndex(max(0, self.paper_combo.findData(page.paper_size.value)))
        for w in (self.bg_print_check, self.paper_combo):
            w.blockSignals(False)
        self.canvas.refresh()
        self._reload_field_list()
        self.properties.load()

    def _reload_field_list(self) -> None:
        self.field_list.blockSignals(True)
        self.field_list.clear()
        for field in self.designer.active_page.fields:
            item = QListWidgetItem(field.label)
            item.setData(Qt.UserRole, field.id)
            item.setFlags(item.flags() | Qt.ItemIsUserCheckable)
            item.setCheckState(Qt.Checked if field.is_active else Qt.Unchecked)
            self.field_list.addItem(item)
            if field.id == self.designer.selected_field_id:
                item.setSelected(True)
        self.field_list.blockSignals(False)

    def _sync_selection(self) -> None:
        self._reload_field_list()
        self.properties.load()
        self.canvas.update()

    def _on_page_clicked(self, page_number: int) -> None:
        self.designer.set_active_page(page_number)
        self._reload_page_controls()

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        self.designer.select(item.data(Qt.UserRole))
        self._sync_selection()

    def _on_item_changed(self, item: QListWidgetItem) -> None:
        field = self.designer.active_page.field_by_id(item.data(Qt.UserRole))
        if field is not None and field.is_active != (item.checkState() == Qt.Checked):
            self.designer.toggle_active(field.id)

    def _remove_selected(self) -> None:
        if self.designer.selected_field_id:
            self.designer.remove_field(self.designer.selected_field_id)
            self._sync_selection()

    def _upload(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "انتخاب سربرگ", "", "Images (*.png *.jpg *.jpeg *.webp)")
        if not path:
            return
        data = Path(path).read_bytes()
        self.designer.upload_background(data, Path(path).suffix)

    def _save(self) -> None:
        if self.designer.persist():
            self.templateSaved.emit()
