"""Rasterization backends for contract page layouts.

The exporter only depends on the :class:`PageRasterizer` protocol, so the Qt
implementation below can be swapped for another engine.  :func:`paint_layout`
is shared with the print renderer so both physical outputs draw text the
same way.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QFont, QGuiApplication, QImage, QPainter

from modules.contracts.models import Alignment
from modules.contracts.services.layout import PageLayout, TextCommand

logger = logging.getLogger(__name__)

SAMPLING = 3
JPEG_QUALITY = 95
_DOTS_PER_METER_96_DPI = 3780

_HALIGN = {
    Alignment.LEFT: Qt.AlignLeft,
    Alignment.CENTER: Qt.AlignHCenter,
    Alignment.RIGHT: Qt.AlignRight,
}


class RasterizerError(RuntimeError):
    """Raised when a page cannot be turned into an image."""


class PageRasterizer(Protocol):
    def rasterize(self, layout: PageLayout, background: Optional[bytes], font_family: str) -> bytes:
        """Return the page as encoded JPEG bytes."""


def make_font(family: str, css_px: float) -> QFont:
    font = QFont(family)
    # 1 CSS px == 0.75 pt at 96 dpi
    font.setPointSizeF(max(css_px, 1.0) * 0.75)
    font.setWeight(QFont.Black)
    return font


def paint_command(painter: QPainter, cmd: TextCommand, font_family: str, *, clip: bool) -> None:
    """Draw one text box rotated about its centre."""

    if not cmd.text:
        return
    painter.save()
    painter.translate(QPointF(cmd.left + cmd.width / 2.0, cmd.top + cmd.height / 2.0))
    if cmd.rotation:
        painter.rotate(cmd.rotation)
    box = QRectF(-cmd.width / 2.0, -cmd.height / 2.0, cmd.width, cmd.height)
    flags = _HALIGN.get(cmd.alignment, Qt.AlignHCenter).value | Qt.AlignVCenter.value | Qt.TextSingleLine.value
    if clip:
        painter.setClipRect(box)
    else:
        flags |= Qt.TextDontClip.value
    painter.setFont(make_font(font_family, cmd.font_size))
    painter.setPen(QColor("black"))
    painter.drawText(box, flags, cmd.text)
    painter.restore()


def paint_layout(
    painter: QPainter,
    layout: PageLayout,
    background: Optional[QImage],
    font_family: str,
    *,
    clip: bool,
) -> None:
    """Paint a page in layout units; the caller sets the painter scale."""

    page_rect = QRectF(0, 0, layout.width, layout.height)
    painter.fillRect(page_rect, QColor("white"))
    if background is not None and not background.isNull():
        painter.drawImage(page_rect, background)
    for cmd in layout.commands:
        paint_command(painter, cmd, font_family, clip=clip)


class QtPageRasterizer:
    """Renders a layout into a :class:`QImage` at ``sampling`` x resolution."""

    def __init__(self, sampling: int = SAMPLING, quality: int = JPEG_QUALITY) -> None:
        self.sampling = sampling
        self.quality = quality

    def render_image(self, layout: PageLayout, background: Optional[bytes], font_family: str) -> QImage:
        if QGuiApplication.instance() is None:
            raise RasterizerError("a QGuiApplication is required for text rendering")
        width = max(1, round(layout.width * self.sampling))
        height = max(1, round(layout.height * self.sampling))
        image = QImage(width, height, QImage.Format_RGB32)
        image.setDotsPerMeterX(_DOTS_PER_METER_96_DPI)
        image.setDotsPerMeterY(_DOTS_PER_METER_96_DPI)
        image.fill(QColor("white"))

        bg_image: Optional[QImage] = None
        if background:
            bg_image = QImage()
            if not bg_image.loadFromData(background):
                logger.warning("[rasterizer] background for page %s is not a readable image", layout.page_number)
                bg_image = None

        painter = QPainter(image)
        try:
            painter.setRenderHint(QPainter.Antialiasing)
            painter.setRenderHint(QPainter.TextAntialiasing)
            painter.setRenderHint(QPainter.SmoothPixmapTransform)
            painter.scale(self.sampling, self.sampling)
            paint_layout(painter, layout, bg_image, font_family, clip=False)
        finally:
            painter.end()
        return image

    def rasterize(self, layout: PageLayout, background: Optional[bytes], font_family: str) -> bytes:
        image = self.render_image(layout, background, font_family)
        data = QByteArray()
        buffer = QBuffer(data)
        buffer.open(QIODevice.WriteOnly)
        ok = image.save(buffer, "JPEG", self.quality)
        buffer.close()
        if not ok:
            raise RasterizerError(f"JPEG encoding failed for page {layout.page_number}")
        return bytes(data.data())


__all__ = [
    "JPEG_QUALITY",
    "PageRasterizer",
    "QtPageRasterizer",
    "RasterizerError",
    "SAMPLING",
    "make_font",
    "paint_layout",
]
