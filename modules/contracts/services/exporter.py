"""PDF export of filled contracts.

Each output page is laid out with the export font calibration, rasterized
by a :class:`PageRasterizer` and placed full-bleed on a reportlab page.
Backgrounds are fetched straight from their URL; the blob cache is not used
for this rare batch operation.
"""

from __future__ import annotations

import logging
import re
import tempfile
from io import BytesIO
from pathlib import Path
from typing import Mapping, Optional, Protocol

import httpx
from PySide6.QtCore import QUrl
from PySide6.QtGui import QDesktopServices, QGuiApplication
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from modules._infra.http_client import HttpClient
from modules.contracts.models import Template
from modules.contracts.services.layout import EXPORT_FONT_SCALE, layout_for_output
from modules.contracts.services.rasterizer import PageRasterizer, RasterizerError
from notifications.models import Notification, Notify, discard

logger = logging.getLogger(__name__)

FILE_PREFIX = "Contract"
SHARE_TITLE = "قرارداد ردیاب"


class ExportError(RuntimeError):
    """Raised by share targets when a file cannot be handed over."""


class ShareTarget(Protocol):
    def available(self) -> bool:
        ...

    def share(self, path: Path, title: str, text: str) -> None:
        ...


class QtShareTarget:
    """Hands the exported file to the desktop's default handler."""

    def available(self) -> bool:
        return QGuiApplication.instance() is not None

    def share(self, path: Path, title: str, text: str) -> None:
        if not QDesktopServices.openUrl(QUrl.fromLocalFile(str(path))):
            raise ExportError(f"no application accepted {path.name}")


def export_file_name(client_name: str, plate: str) -> str:
    def clean(value: str) -> str:
        return re.sub(r"\s+", "_", (value or "").strip())

    return f"{FILE_PREFIX}_{clean(client_name)}_{clean(plate)}.pdf"


class PDFExporter:
    def __init__(
        self,
        http: HttpClient,
        rasterizer: PageRasterizer,
        download_dir: str | Path,
        notify: Notify = discard,
        share_target: Optional[ShareTarget] = None,
        font_scale: float = EXPORT_FONT_SCALE,
    ) -> None:
        self.http = http
        self.rasterizer = rasterizer
        self.download_dir = Path(download_dir)
        self._notify = notify
        self.share_target = share_target
        self.font_scale = font_scale

    def _fetch_background(self, url: Optional[str]) -> Optional[bytes]:
        if not url:
            return None
        try:
            return self.http.get_bytes(url)
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            logger.warning("[export] background fetch failed for %s: %s", url, exc)
            return None

    def render(self, template: Template, answers: Mapping[str, str], font_family: str) -> Optional[bytes]:
        """Return the PDF document bytes, or ``None`` when a page fails to rasterize."""

        layouts = layout_for_output(template, answers, font_scale=self.font_scale)
        width_mm, height_mm = template.master_paper_size.size_mm
        page_size = (width_mm * mm, height_mm * mm)

        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=page_size)
        with tempfile.TemporaryDirectory(prefix="trackdesk-export-") as tmp:
            for layout in layouts:
                try:
                    jpeg = self.rasterizer.rasterize(layout, self._fetch_background(layout.background), font_family)
                except RasterizerError as exc:
                    logger.warning("[export] rasterizing page %s failed, export aborted: %s", layout.page_number, exc)
                    return None
                image_path = Path(tmp) / f"page-{layout.page_number}.jpg"
                image_path.write_bytes(jpeg)
                pdf.drawImage(str(image_path), 0, 0, width=page_size[0], height=page_size[1])
                pdf.showPage()
            pdf.save()
        return buffer.getvalue()

    def export(
        self,
        template: Template,
        answers: Mapping[str, str],
        client_name: str,
        plate: str,
        font_family: str,
        *,
        share: bool = False,
    ) -> Optional[Path]:
        """Write the PDF to the download directory and optionally share it."""

        self._notify(Notification("خروجی PDF", "در حال آماده‌سازی فایل هوشمند...", source="export"))
        document = self.render(template, answers, font_family)
        if document is None:
            return None

        self.download_dir.mkdir(parents=True, exist_ok=True)
        path = self.download_dir / export_file_name(client_name, plate)
        path.write_bytes(document)
        logger.info("[export] wrote %s (%d bytes)", path, len(document))

        if share and self.share_target is not None and self.share_target.available():
            try:
                self.share_target.share(path, SHARE_TITLE, f"قرارداد مشتری: {client_name} - پلاک: {plate}")
            except ExportError as exc:
                logger.warning("[export] share failed: %s", exc)
                self._notify(
                    Notification("خروجی PDF", "خطا در ارسال مستقیم؛ فایل دانلود شد.", severity="warning", source="export")
                )
                return path
            self._notify(Notification("خروجی PDF", "اشتراک‌گذاری با موفقیت انجام شد", severity="success", source="export"))
            return path

        if share:
            message = "اشتراک‌گذاری در دسترس نیست؛ فایل دانلود شد."
            severity = "warning"
        else:
            message = "فایل PDF در حافظه ذخیره شد."
            severity = "success"
        self._notify(Notification("خروجی PDF", message, severity=severity, source="export"))
        return path


__all__ = ["ExportError", "PDFExporter", "QtShareTarget", "ShareTarget", "export_file_name"]
