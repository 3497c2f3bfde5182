from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

try:
    from PySide6.QtCore import QEvent, QPointF, Qt
    from PySide6.QtGui import QMouseEvent
    from PySide6.QtWidgets import QApplication
except ImportError as exc:  # pragma: no cover - environment-specific
    pytest.skip(f"PySide6 unavailable: {exc}", allow_module_level=True)

from modules.contracts.models import Field, Page, Template  # noqa: E402
from modules.contracts.services.blob_cache import BlobCache  # noqa: E402
from modules.contracts.services.designer import TemplateDesigner  # noqa: E402
from modules.contracts.services.letterheads import LetterheadStorage  # noqa: E402
from modules.contracts.services.templates import TemplateService  # noqa: E402
from modules.contracts.ui.designer_canvas import DesignerCanvas  # noqa: E402


@pytest.fixture(scope="module")
def app():
    return QApplication.instance() or QApplication([])


def _offline(url: str) -> bytes:
    raise OSError("offline")


@pytest.fixture
def canvas(app, store, tmp_path, notes):
    template = Template(pages=(Page(page_number=1, fields=(Field(id="1", key="plate", label="Plate", x=50, y=50),)),))
    cache = BlobCache(tmp_path / "cache.db", _offline)
    designer = TemplateDesigner(
        template,
        TemplateService(store),
        LetterheadStorage(tmp_path / "letterheads"),
        cache,
        notes.append,
    )
    widget = DesignerCanvas(designer, cache, "Vazirmatn")
    widget.show()
    yield widget
    widget.close()
    cache.close()


def _mouse(widget, kind, x, y, buttons=Qt.LeftButton):
    button = Qt.NoButton if kind == QEvent.MouseMove else Qt.LeftButton
    pos = QPointF(x, y)
    QApplication.sendEvent(widget, QMouseEvent(kind, pos, widget.mapToGlobal(pos), button, buttons, Qt.NoModifier))


def test_canvas_has_reference_size(canvas):
    assert (canvas.width(), canvas.height()) == (595, 842)


def test_dragging_a_field_is_clamped_to_the_canvas(canvas):
    selected = []
    canvas.fieldSelected.connect(selected.append)

    _mouse(canvas, QEvent.MouseButtonPress, 300, 430)
    _mouse(canvas, QEvent.MouseMove, -40, 900)
    _mouse(canvas, QEvent.MouseButtonRelease, -40, 900, Qt.NoButton)

    assert selected == ["1"]
    assert not canvas.designer.dragging
    moved = canvas.designer.active_page.field_by_id("1")
    assert (moved.x, moved.y) == (0, 98)


def test_background_click_clears_the_selection(canvas):
    cleared = []
    canvas.selectionCleared.connect(lambda: cleared.append(True))
    canvas.designer.select("1")

    _mouse(canvas, QEvent.MouseButtonPress, 40, 40)
    _mouse(canvas, QEvent.MouseButtonRelease, 40, 40, Qt.NoButton)

    assert canvas.designer.selected_field_id is None
    assert cleared == [True]
    assert not canvas.designer.dragging
