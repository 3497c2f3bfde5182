from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QPointF, QRectF, Qt, Signal
from PySide6.QtGui import QColor, QImage, QMouseEvent, QPainter, QPaintEvent, QPen, QTransform
from PySide6.QtWidgets import QSizePolicy, QWidget

from modules.contracts.models import Field
from modules.contracts.services.blob_cache import BlobCache
from modules.contracts.services.designer import TemplateDesigner
from modules.contracts.services.layout import TextCommand
from modules.contracts.services.rasterizer import paint_command


class DesignerCanvas(QWidget):
    """Reference-resolution page on which fields are dragged.

    Fields are drawn at ``x%``/``y%`` of the canvas with their label as text;
    the canvas size is fixed to the active page's reference paper size.
    """

    fieldSelected = Signal(str)
    selectionCleared = Signal()

    def __init__(self, designer: TemplateDesigner, cache: BlobCache, font_family: str, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.designer = designer
        self.cache = cache
        self.font_family = font_family
        self._background: Optional[QImage] = None
        self._background_url: Optional[str] = None
        self.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)
        self.setMouseTracking(False)
        self.refresh()

    # ------------------------------------------------------------------
    def refresh(self) -> None:
        page = self.designer.active_page
        width, height = page.paper_size.reference_px
        self.setFixedSize(width, height)
        if page.bg_image != self._background_url:
            self._background_url = page.bg_image
            self._background = None
            if page.bg_image:
                image = QImage(self.cache.resolve(page.bg_image))
                self._background = None if image.isNull() else image
        self.update()

    def _field_rect(self, field: Field) -> QRectF:
        return QRectF(field.x / 100.0 * self.width(), field.y / 100.0 * self.height(), field.width, field.height)

    def _field_at(self, pos: QPointF) -> Optional[Field]:
        # topmost (last drawn) first
        for field in reversed(self.designer.active_page.active_fields):
            rect = self._field_rect(field)
            transform = QTransform()
            transform.translate(rect.center().x(), rect.center().y())
            transform.rotate(field.rotation)
            transform.translate(-rect.center().x(), -rect.center().y())
            inverted, ok = transform.inverted()
            local = inverted.map(pos) if ok else pos
            if rect.adjusted(-6, -6, 6, 6).contains(local):
                return field
        return None

    # ------------------------------------------------------------------
    def paintEvent(self, event: QPaintEvent) -> None:  # noqa: N802 - Qt override
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), QColor("white"))
        if self._background is not None:
            painter.drawImage(QRectF(self.rect()), self._background)
        selected = self.designer.selected_field_id
        for field in self.designer.active_page.active_fields:
            rect = self._field_rect(field)
            cmd = TextCommand(
                key=field.key,
                text=field.label + (" ▾" if field.is_dropdown else ""),
                left=rect.left(),
                top=rect.top(),
                width=rect.width(),
                height=rect.height(),
                font_size=field.font_size,
                rotation=field.rotation,
                alignment=field.alignment,
            )
            if field.id == selected:
                painter.save()
                painter.translate(rect.center())
                painter.rotate(field.rotation)
                painter.setPen(QPen(QColor("#3b82f6"), 2))
                painter.setBrush(QColor(59, 130, 246, 18))
                painter.drawRoundedRect(QRectF(-rect.width() / 2 - 4, -rect.height() / 2 - 4, rect.width() + 8, rect.height() + 8), 6, 6)
                painter.restore()
            else:
                painter.setOpacity(0.6)
            paint_command(painter, cmd, self.font_family, clip=False)
            painter.setOpacity(1.0)
        painter.end()

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802 - Qt override
        if event.button() != Qt.LeftButton:
            return
        field = self._field_at(event.position())
        if field is None:
            self.designer.clear_selection()
            self.selectionCleared.emit()
        else:
            self.designer.begin_drag(field.id, self.width(), self.height())
            self.fieldSelected.emit(field.id)
        self.update()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:  # noqa: N802 - Qt override
        if self.designer.dragging:
            pos = event.position()
            self.designer.drag_to(pos.x(), pos.y())

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:  # noqa: N802 - Qt override
        self.designer.end_drag()
