"""Print renderer: paints filled contract pages onto a Qt paged device."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from PySide6.QtCore import QMarginsF
from PySide6.QtGui import QGuiApplication, QImage, QPageLayout, QPageSize, QPagedPaintDevice, QPainter

from modules.contracts.models import PaperSize, Template
from modules.contracts.services.blob_cache import BlobCache
from modules.contracts.services.layout import layout_for_output
from modules.contracts.services.rasterizer import paint_layout

logger = logging.getLogger(__name__)

_QT_PAGE_SIZES = {PaperSize.A4: QPageSize.PageSizeId.A4, PaperSize.A5: QPageSize.PageSizeId.A5}


class PrintRenderer:
    def __init__(self, cache: BlobCache) -> None:
        self.cache = cache

    def _background(self, url: Optional[str]) -> Optional[QImage]:
        if not url:
            return None
        local = self.cache.resolve(url)
        image = QImage(local)
        if image.isNull():
            logger.warning("[print] background %s could not be loaded", url)
            return None
        return image

    def configure(self, device: QPagedPaintDevice, paper: PaperSize) -> None:
        device.setPageLayout(
            QPageLayout(
                QPageSize(_QT_PAGE_SIZES[paper]),
                QPageLayout.Orientation.Portrait,
                QMarginsF(0, 0, 0, 0),
            )
        )

    def print_document(
        self,
        template: Template,
        answers: Mapping[str, str],
        device: Optional[QPagedPaintDevice],
        font_family: str,
    ) -> int:
        """Paint every output page onto ``device`` and return the page count.

        Without a device or a running GUI application there is nothing to
        paint on and the call does nothing.
        """

        if device is None or QGuiApplication.instance() is None:
            logger.debug("[print] no print surface available")
            return 0
        layouts = layout_for_output(template, answers)
        if not layouts:
            return 0
        self.configure(device, template.master_paper_size)

        painter = QPainter()
        if not painter.begin(device):
            logger.warning("[print] could not start painting on the print device")
            return 0
        try:
            for index, layout in enumerate(layouts):
                if index > 0:
                    device.newPage()
                painter.save()
                painter.scale(device.width() / layout.width, device.height() / layout.height)
                paint_layout(painter, layout, self._background(layout.background), font_family, clip=True)
                painter.restore()
        finally:
            painter.end()
        return len(layouts)


__all__ = ["PrintRenderer"]
