from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

try:
    from PySide6.QtGui import QPdfWriter
    from PySide6.QtWidgets import QApplication, QFormLayout, QLineEdit
except ImportError as exc:  # pragma: no cover - environment-specific
    pytest.skip(f"PySide6 unavailable: {exc}", allow_module_level=True)

from modules.contracts.models import Field, Page, Template  # noqa: E402
from modules.contracts.services import printing  # noqa: E402
from modules.contracts.services.blob_cache import BlobCache  # noqa: E402
from modules.contracts.services.exporter import PDFExporter  # noqa: E402
from modules.contracts.services.form_fill import FormFillSession  # noqa: E402
from modules.contracts.services.printing import PrintRenderer  # noqa: E402
from modules.contracts.services.rasterizer import QtPageRasterizer  # noqa: E402
from modules.contracts.ui.form_fill_view import DropdownButton, FormFillView  # noqa: E402


@pytest.fixture(scope="module")
def app():
    return QApplication.instance() or QApplication([])


class NoNetwork:
    def get_bytes(self, url: str) -> bytes:
        raise OSError("offline")


class RecordingRasterizer(QtPageRasterizer):
    def __init__(self) -> None:
        super().__init__(sampling=1)
        self.layouts = []

    def rasterize(self, layout, background, font_family):
        self.layouts.append(layout)
        return super().rasterize(layout, background, font_family)


def _template() -> Template:
    return Template(
        pages=(
            Page(
                page_number=1,
                bg_image="https://cdn.test/unreachable.png",
                fields=(
                    Field(id="1", key="name", label="Name", x=20, y=10),
                    Field(id="2", key="color", label="Color", x=20, y=20, is_dropdown=True, options=("Red", "Blue")),
                    Field(id="3", key="tazkira", label="Plate", x=60, y=30, rotation=15),
                ),
            ),
            Page(page_number=2, fields=(Field(id="4", key="note", label="Note"),)),
        )
    )


@pytest.fixture
def session(settings, notes):
    return FormFillSession(_template(), settings, notes.append)


@pytest.fixture
def view(app, session, tmp_path):
    cache = BlobCache(tmp_path / "images.db", NoNetwork().get_bytes)
    widget = FormFillView(session, cache, "Vazirmatn")
    yield widget
    cache.close()


def _command(layout, key):
    return next(c for c in layout.commands if c.key == key)


def test_unloadable_letterhead_keeps_positioned_inputs(view, session):
    page_view = view.pages[0]

    assert page_view.is_overlay
    assert not isinstance(page_view.layout(), QFormLayout)
    assert page_view.sheet.background is None
    cmd = _command(session.layout(page_view.page), "name")
    proxy = page_view.proxy_for("name")
    assert (proxy.pos().x(), proxy.pos().y()) == pytest.approx((cmd.left, cmd.top))
    assert proxy.size().width() == pytest.approx(cmd.width)


def test_inputs_rotate_about_their_centre_and_follow_zoom(view, session):
    page_view = view.pages[0]
    proxy = page_view.proxy_for("tazkira")

    assert proxy.rotation() == 15
    origin = proxy.transformOriginPoint()
    cmd = _command(session.layout(page_view.page), "tazkira")
    assert (origin.x(), origin.y()) == pytest.approx((cmd.width / 2, cmd.height / 2))

    session.zoom_out()
    view.relayout()

    cmd = _command(session.layout(page_view.page), "tazkira")
    assert proxy.pos().x() == pytest.approx(cmd.left)
    assert page_view.sheet.sceneRect().width() == pytest.approx(session.layout(page_view.page).width)


def test_page_without_letterhead_uses_form_rows(view, session):
    session.toggle_page(2)
    view.rebuild()

    assert [p.page.page_number for p in view.pages] == [1, 2]
    plain = view.pages[1]
    assert not plain.is_overlay
    assert isinstance(plain.layout(), QFormLayout)
    assert plain.proxy_for("note") is None
    assert isinstance(plain.input_for("note"), QLineEdit)


def test_dropdown_shows_its_default_option(view, session):
    button = view.pages[0].input_for("color")

    assert isinstance(button, DropdownButton)
    assert session.value("color") == "Red"
    assert button.text() == "Red"


def test_enter_opens_the_next_dropdown(view, session, monkeypatch):
    page_view = view.pages[0]
    opened = []
    monkeypatch.setattr(page_view.input_for("color"), "open_popover", lambda: opened.append("color"))
    edit = page_view.input_for("name")

    edit.textEdited.emit("Ali")
    edit.returnPressed.emit()

    assert opened == ["color"]
    assert session.value("name") == "Ali"


def test_plate_sits_at_the_same_relative_spot_on_screen_print_and_pdf(view, session, tmp_path, monkeypatch):
    session.set_value("tazkira", "AB-123")
    view.relayout()
    page_view = view.pages[0]
    sheet = page_view.sheet.sceneRect()
    proxy = page_view.proxy_for("tazkira")

    assert page_view.input_for("tazkira").text() == "AB-123"
    assert proxy.pos().x() / sheet.width() == pytest.approx(0.60)
    assert proxy.pos().y() / sheet.height() == pytest.approx(0.30)

    printed = []
    monkeypatch.setattr(printing, "paint_layout", lambda painter, layout, *args, **kwargs: printed.append(layout))
    writer = QPdfWriter(str(tmp_path / "printed.pdf"))
    PrintRenderer(view.cache).print_document(session.template, session.answers, writer, "Vazirmatn")
    del writer

    rasterizer = RecordingRasterizer()
    PDFExporter(NoNetwork(), rasterizer, tmp_path).render(session.template, session.answers, "Vazirmatn")

    for layout in (printed[0], rasterizer.layouts[0]):
        cmd = _command(layout, "tazkira")
        assert cmd.text == "AB-123"
        assert cmd.rotation == 15
        assert cmd.left / layout.width == pytest.approx(0.60)
        assert cmd.top / layout.height == pytest.approx(0.30)
