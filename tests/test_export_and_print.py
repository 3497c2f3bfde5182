from __future__ import annotations

import os
from io import BytesIO
from pathlib import Path

import httpx
import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

try:
    from PySide6.QtGui import QPdfWriter
    from PySide6.QtWidgets import QApplication
except ImportError as exc:  # pragma: no cover - environment-specific
    pytest.skip(f"PySide6 unavailable: {exc}", allow_module_level=True)

from pypdf import PdfReader  # noqa: E402

from modules.contracts.models import Field, Page, PaperSize, Template  # noqa: E402
from modules.contracts.services.blob_cache import BlobCache  # noqa: E402
from modules.contracts.services.exporter import (  # noqa: E402
    ExportError,
    PDFExporter,
    export_file_name,
)
from modules.contracts.services.layout import layout_for_output  # noqa: E402
from modules.contracts.services.printing import PrintRenderer  # noqa: E402
from modules.contracts.services.rasterizer import QtPageRasterizer, RasterizerError  # noqa: E402


def _ensure_app() -> QApplication:
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app


class NoNetwork:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def get_bytes(self, url: str) -> bytes:
        self.calls.append(url)
        raise OSError("offline")


class FailingRasterizer:
    def rasterize(self, layout, background, font_family):
        raise RasterizerError("no fonts")


class RefusingShare:
    def available(self) -> bool:
        return True

    def share(self, path: Path, title: str, text: str) -> None:
        raise ExportError("no handler")


class RecordingShare:
    def __init__(self) -> None:
        self.shared: list[Path] = []

    def available(self) -> bool:
        return True

    def share(self, path: Path, title: str, text: str) -> None:
        self.shared.append(path)


def _two_page_template(paper: PaperSize = PaperSize.A4) -> Template:
    return Template(
        pages=(
            Page(
                page_number=1,
                paper_size=paper,
                bg_image="https://cdn.test/header.png",
                fields=(
                    Field(id="1", key="name", label="Name", x=60, y=20),
                    Field(id="2", key="tazkira", label="Plate", x=60, y=30, rotation=15),
                ),
            ),
            Page(page_number=2),
        )
    )


def test_export_file_name_replaces_whitespace():
    assert export_file_name("Ali  Reza", "KBL 12-3") == "Contract_Ali_Reza_KBL_12-3.pdf"


def test_export_skips_empty_second_page(tmp_path, notes):
    _ensure_app()
    http = NoNetwork()
    exporter = PDFExporter(http, QtPageRasterizer(sampling=1), tmp_path, notes.append)

    path = exporter.export(_two_page_template(), {"name": "Ali", "tazkira": "KBL-1"}, "Ali", "KBL-1", "Vazirmatn")

    assert path == tmp_path / "Contract_Ali_KBL-1.pdf"
    reader = PdfReader(BytesIO(path.read_bytes()))
    assert len(reader.pages) == 1
    box = reader.pages[0].mediabox
    assert float(box.width) == pytest.approx(595.3, abs=0.5)
    assert float(box.height) == pytest.approx(841.9, abs=0.5)
    # background fetch failure does not abort the export
    assert http.calls == ["https://cdn.test/header.png"]
    assert notes[0].message.startswith("در حال آماده‌سازی")
    assert notes[-1].severity == "success"


def test_export_uses_master_paper_size(tmp_path):
    _ensure_app()
    exporter = PDFExporter(NoNetwork(), QtPageRasterizer(sampling=1), tmp_path)

    document = exporter.render(_two_page_template(PaperSize.A5), {}, "Vazirmatn")

    box = PdfReader(BytesIO(document)).pages[0].mediabox
    assert float(box.width) == pytest.approx(419.5, abs=0.5)


def test_rasterizer_failure_aborts_export(tmp_path, notes):
    exporter = PDFExporter(NoNetwork(), FailingRasterizer(), tmp_path, notes.append)

    assert exporter.export(_two_page_template(), {}, "Ali", "1", "Vazirmatn") is None
    assert list(tmp_path.iterdir()) == []
    assert [n.severity for n in notes] == ["info"]


def test_share_failure_falls_back_to_download(tmp_path, notes):
    _ensure_app()
    exporter = PDFExporter(NoNetwork(), QtPageRasterizer(sampling=1), tmp_path, notes.append, RefusingShare())

    path = exporter.export(_two_page_template(), {}, "Ali", "1", "Vazirmatn", share=True)

    assert path is not None and path.exists()
    assert notes[-1].severity == "warning"
    assert "دانلود" in notes[-1].message


def test_share_success(tmp_path, notes):
    _ensure_app()
    target = RecordingShare()
    exporter = PDFExporter(NoNetwork(), QtPageRasterizer(sampling=1), tmp_path, notes.append, target)

    path = exporter.export(_two_page_template(), {}, "Ali", "1", "Vazirmatn", share=True)

    assert target.shared == [path]
    assert notes[-1].severity == "success"


def test_rasterized_page_is_jpeg_at_sampling_resolution():
    _ensure_app()
    layout = layout_for_output(_two_page_template(), {"name": "Ali"})[0]

    image = QtPageRasterizer(sampling=2).render_image(layout, None, "Vazirmatn")
    jpeg = QtPageRasterizer(sampling=1).rasterize(layout, None, "Vazirmatn")

    assert image.width() == round(layout.width * 2)
    assert jpeg[:2] == b"\xff\xd8"


def test_print_without_device_is_a_no_op(tmp_path):
    renderer = PrintRenderer(BlobCache(tmp_path / "c.db", NoNetwork().get_bytes))
    assert renderer.print_document(_two_page_template(), {}, None, "Vazirmatn") == 0


def test_print_paints_one_device_page_per_output_page(tmp_path):
    _ensure_app()
    template = Template(
        pages=(
            Page(page_number=1, fields=(Field(id="1", key="a", label="A"),)),
            Page(page_number=2),
            Page(page_number=3, fields=(Field(id="2", key="b", label="B"),)),
        )
    )
    writer = QPdfWriter(str(tmp_path / "printed.pdf"))
    renderer = PrintRenderer(BlobCache(tmp_path / "c.db", NoNetwork().get_bytes))

    pages = renderer.print_document(template, {"a": "x", "b": "y"}, writer, "Vazirmatn")
    del writer

    assert pages == 2
    assert len(PdfReader(str(tmp_path / "printed.pdf")).pages) == 2


class MalformedUrlClient:
    def get_bytes(self, url: str) -> bytes:
        raise httpx.InvalidURL(f"cannot parse {url}")


def test_malformed_background_url_does_not_abort_export(tmp_path, notes):
    _ensure_app()
    exporter = PDFExporter(MalformedUrlClient(), QtPageRasterizer(sampling=1), tmp_path, notes.append)

    path = exporter.export(_two_page_template(), {"name": "Ali"}, "Ali", "1", "Vazirmatn")

    assert path is not None and path.exists()
    assert notes[-1].severity == "success"
