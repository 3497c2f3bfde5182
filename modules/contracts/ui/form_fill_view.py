"""Interactive contract pages: inputs positioned over the letterhead."""

from __future__ import annotations

from typing import Dict, List, Optional

from PySide6.QtCore import QPointF, QRectF, QSizeF, Qt, Signal
from PySide6.QtGui import QColor, QFont, QImage, QPainter
from PySide6.QtWidgets import (
    QFormLayout,
    QFrame,
    QGraphicsProxyWidget,
    QGraphicsScene,
    QGraphicsView,
    QLineEdit,
    QMenu,
    QSizePolicy,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from modules.contracts.models import Alignment, Field, Page
from modules.contracts.services.blob_cache import BlobCache
from modules.contracts.services.form_fill import FormFillSession

_QT_ALIGN = {
    Alignment.LEFT: Qt.AlignLeft,
    Alignment.CENTER: Qt.AlignHCenter,
    Alignment.RIGHT: Qt.AlignRight,
}

_INPUT_STYLE = "QLineEdit { background: transparent; border: none; border-bottom: 1px dashed #94a3b8; }"
_DROPDOWN_STYLE = "QToolButton { background: transparent; border: none; border-bottom: 1px dashed #3b82f6; }"


class DropdownButton(QToolButton):
    """Button showing the chosen option; its menu lists the field's options."""

    chosen = Signal(str, str)

    def __init__(self, field: Field, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.field = field
        self.setPopupMode(QToolButton.InstantPopup)
        self.setStyleSheet(_DROPDOWN_STYLE)
        menu = QMenu(self)
        for option in field.options:
            action = menu.addAction(option)
            action.triggered.connect(lambda _checked=False, value=option: self._choose(value))
        self.setMenu(menu)

    def _choose(self, value: str) -> None:
        self.setText(value)
        self.chosen.emit(self.field.key, value)

    def open_popover(self) -> None:
        self.setFocus()
        self.showMenu()


class SheetView(QGraphicsView):
    """White sheet with the letterhead drawn behind the proxied inputs."""

    def __init__(self, background: Optional[QImage], parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.background = background
        self.setScene(QGraphicsScene(self))
        self.setFrameShape(QFrame.NoFrame)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        # scene coordinates stay left-to-right like the print layout
        self.setLayoutDirection(Qt.LeftToRight)
        self.setRenderHints(QPainter.Antialiasing | QPainter.TextAntialiasing | QPainter.SmoothPixmapTransform)

    def set_sheet_size(self, width: float, height: float) -> None:
        self.scene().setSceneRect(0, 0, width, height)
        self.setFixedSize(int(width), int(height))

    def drawBackground(self, painter: QPainter, rect: QRectF) -> None:  # noqa: N802 - Qt override
        sheet = self.sceneRect()
        painter.fillRect(sheet, QColor("white"))
        if self.background is not None:
            painter.drawImage(sheet, self.background)


class FormPageView(QWidget):
    """One page of the form at the session's zoom.

    With a letterhead, each active field becomes an input placed (and
    rotated) at its percentage position on a :class:`SheetView`; a page
    whose letterhead cannot be loaded keeps the same placement on a white
    sheet. Without a letterhead the fields fall back to a plain form.
    """

    valueChanged = Signal(str, str)

    def __init__(
        self,
        session: FormFillSession,
        page: Page,
        cache: BlobCache,
        font_family: str,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.session = session
        self.page = page
        self.cache = cache
        self.font_family = font_family
        self.sheet: Optional[SheetView] = None
        self._inputs: Dict[str, QWidget] = {}
        self._proxies: Dict[str, QGraphicsProxyWidget] = {}
        self.setLayoutDirection(Qt.RightToLeft)
        self.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
        if page.bg_image:
            image = QImage(cache.resolve(page.bg_image))
            self.sheet = SheetView(None if image.isNull() else image)
            self._build_overlay()
        else:
            self._build_grid()
        self.relayout()

    @property
    def is_overlay(self) -> bool:
        return self.sheet is not None

    # -- construction -----------------------------------------------------
    def _make_input(self, field: Field, parent: QWidget | None) -> QWidget:
        if field.is_dropdown:
            widget: QWidget = DropdownButton(field, parent)
            widget.chosen.connect(self._on_value)
        else:
            edit = QLineEdit(parent)
            edit.setPlaceholderText(field.label)
            edit.setAlignment(_QT_ALIGN[field.alignment] | Qt.AlignVCenter)
            edit.textEdited.connect(lambda text, key=field.key: self._on_value(key, text))
            edit.returnPressed.connect(lambda key=field.key: self.advance_from(key))
            widget = edit
        widget.setObjectName(field.key)
        self._inputs[field.key] = widget
        return widget

    def _build_overlay(self) -> None:
        box = QVBoxLayout(self)
        box.setContentsMargins(0, 0, 0, 0)
        box.addWidget(self.sheet)
        scene = self.sheet.scene()
        for field in self.page.active_fields:
            # proxied widgets must be parentless
            widget = self._make_input(field, None)
            widget.setLayoutDirection(Qt.RightToLeft)
            widget.setAttribute(Qt.WA_TranslucentBackground)
            widget.setMinimumSize(1, 1)
            if isinstance(widget, QLineEdit):
                widget.setStyleSheet(_INPUT_STYLE)
            self._proxies[field.key] = scene.addWidget(widget)

    def _build_grid(self) -> None:
        form = QFormLayout(self)
        for field in self.page.active_fields:
            form.addRow(field.label, self._make_input(field, self))

    # -- state ------------------------------------------------------------
    def _on_value(self, key: str, value: str) -> None:
        self.session.set_value(key, value)
        self.valueChanged.emit(key, value)

    def input_for(self, key: str) -> Optional[QWidget]:
        return self._inputs.get(key)

    def proxy_for(self, key: str) -> Optional[QGraphicsProxyWidget]:
        return self._proxies.get(key)

    def sync_values(self) -> None:
        for field in self.page.active_fields:
            widget = self._inputs.get(field.key)
            value = self.session.value(field.key)
            if isinstance(widget, QLineEdit):
                if widget.text() != value:
                    widget.setText(value)
            elif isinstance(widget, DropdownButton):
                widget.setText(value or field.label)

    def relayout(self) -> None:
        """Place inputs from the session's layout at the current zoom."""

        self.sync_values()
        if self.sheet is None:
            self.setFixedWidth(int(self.session.reference_width() * self.session.zoom))
            self.adjustSize()
            return
        layout = self.session.layout(self.page)
        self.sheet.set_sheet_size(layout.width, layout.height)
        self.setFixedSize(int(layout.width), int(layout.height))
        for cmd in layout.commands:
            widget = self._inputs.get(cmd.key)
            proxy = self._proxies.get(cmd.key)
            if widget is None or proxy is None:
                continue
            font = QFont(self.font_family)
            font.setPixelSize(max(1, int(round(cmd.font_size))))
            font.setWeight(QFont.Black)
            widget.setFont(font)
            proxy.setPos(QPointF(cmd.left, cmd.top))
            proxy.resize(QSizeF(cmd.width, cmd.height))
            proxy.setTransformOriginPoint(QPointF(cmd.width / 2, cmd.height / 2))
            proxy.setRotation(cmd.rotation)
        self.sheet.viewport().update()

    def advance_from(self, key: str) -> None:
        step = self.session.focus_advance(self.page, key)
        if step is None:
            return
        field, open_popover = step
        widget = self._inputs.get(field.key)
        if widget is None:
            return
        if open_popover and isinstance(widget, DropdownButton):
            widget.open_popover()
        else:
            widget.setFocus()


class FormFillView(QWidget):
    """Stack of the currently visible pages."""

    valueChanged = Signal(str, str)

    def __init__(self, session: FormFillSession, cache: BlobCache, font_family: str, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.session = session
        self.cache = cache
        self.font_family = font_family
        self.pages: List[FormPageView] = []
        self._layout = QVBoxLayout(self)
        self._layout.setAlignment(Qt.AlignHCenter | Qt.AlignTop)
        self._layout.setSpacing(24)
        self.rebuild()

    def rebuild(self) -> None:
        for view in self.pages:
            self._layout.removeWidget(view)
            view.deleteLater()
        self.pages = []
        for number in self.session.visible_pages:
            page = self.session.template.page(number)
            if page is None:
                continue
            self.session.default_dropdown_values(page)
            view = FormPageView(self.session, page, self.cache, self.font_family, self)
            view.valueChanged.connect(self.valueChanged)
            self._layout.addWidget(view, 0, Qt.AlignHCenter)
            self.pages.append(view)

    def set_font_family(self, family: str) -> None:
        self.font_family = family
        for view in self.pages:
            view.font_family = family
            view.relayout()

    def relayout(self) -> None:
        for view in self.pages:
            view.relayout()
