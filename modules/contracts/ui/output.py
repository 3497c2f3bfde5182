"""Print and PDF actions shared by the workspace and archive."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

from PySide6.QtPrintSupport import QPrintDialog, QPrinter
from PySide6.QtWidgets import QDialog, QWidget

from modules.contracts.models import Template
from modules.contracts.services.exporter import PDFExporter, QtShareTarget
from modules.contracts.services.printing import PrintRenderer
from modules.contracts.services.rasterizer import QtPageRasterizer
from utils.state import AppContext

logger = logging.getLogger(__name__)


class ContractOutput:
    def __init__(self, ctx: AppContext) -> None:
        self.ctx = ctx
        self.renderer = PrintRenderer(ctx.cache)
        self.exporter = PDFExporter(
            ctx.http,
            QtPageRasterizer(),
            ctx.config.download_dir,
            ctx.notify,
            share_target=QtShareTarget(),
        )

    def print_contract(
        self,
        parent: Optional[QWidget],
        template: Template,
        answers: Mapping[str, str],
        font_family: str,
    ) -> int:
        printer = QPrinter(QPrinter.HighResolution)
        self.renderer.configure(printer, template.master_paper_size)
        dialog = QPrintDialog(printer, parent)
        if dialog.exec() != QDialog.Accepted:
            return 0
        pages = self.renderer.print_document(template, answers, printer, font_family)
        logger.info("[print] sent %d page(s) to %s", pages, printer.printerName())
        return pages

    def export_contract(
        self,
        template: Template,
        answers: Mapping[str, str],
        client_name: str,
        plate: str,
        font_family: str,
        *,
        share: bool = False,
    ) -> Optional[Path]:
        return self.exporter.export(template, answers, client_name, plate, font_family, share=share)
