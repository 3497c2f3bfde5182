from __future__ import annotations

import pytest

from modules.contracts.models import Alignment, PaperSize, default_template
from modules.contracts.models.records import SettingRecord
from modules.contracts.services.blob_cache import BlobCache
from modules.contracts.services.designer import TemplateDesigner, clamp_percent, split_options
from modules.contracts.services.letterheads import LetterheadStorage
from modules.contracts.services.templates import TEMPLATE_SETTINGS_KEY, TemplateService


def _no_fetch(url: str) -> bytes:
    raise AssertionError(f"unexpected fetch of {url}")


@pytest.fixture
def designer(store, tmp_path, notes):
    return TemplateDesigner(
        default_template(),
        TemplateService(store),
        LetterheadStorage(tmp_path / "letterheads"),
        BlobCache(tmp_path / "cache.db", _no_fetch),
        notes.append,
    )


def test_split_options_accepts_commas_arabic_commas_and_newlines():
    assert split_options("GT06, TK103،ST901\n  \nX") == ("GT06", "TK103", "ST901", "X")
    assert split_options("") == ()


def test_clamp_percent_bounds():
    assert clamp_percent(-5) == 0
    assert clamp_percent(120) == 98
    assert clamp_percent(33.3) == 33.3


def test_add_field_with_empty_label_warns_and_changes_nothing(designer, notes):
    before = designer.template

    assert designer.add_field("   ") is None
    assert designer.template is before
    assert notes[-1].severity == "warning"


def test_add_dropdown_field_at_default_position(designer):
    seen = []
    designer.subscribe(seen.append)

    field = designer.add_field("Tier", width=120, alignment="C", is_dropdown=True, options_text="Bronze, Silver")

    assert field is not None
    assert field.key == f"f_{field.id}"
    assert (field.x, field.y, field.height) == (40, 40, 30)
    assert field.alignment is Alignment.CENTER
    assert field.options == ("Bronze", "Silver")
    assert designer.active_page.field_by_id(field.id) == field
    assert seen[-1] is designer.template


def test_update_field_coerces_numbers_and_aliases(designer):
    field = designer.add_field("Plate")

    assert designer.update_field(field.id, {"fontSize": "22", "rotation": "-15", "width": "oops", "isActive": 0})

    updated = designer.active_page.field_by_id(field.id)
    assert updated.font_size == 22
    assert updated.rotation == -15
    assert updated.width == 150
    assert updated.is_active is False
    assert designer.update_field("missing", {"x": 1}) is False


def test_drag_is_clamped_to_the_canvas(designer):
    field = designer.add_field("Plate")
    designer.begin_drag(field.id, 595, 842)

    assert designer.dragging
    assert designer.drag_to(-40, 900) == (0, 98)
    x, y = designer.drag_to(297.5, 421)
    assert (x, y) == (50, 50)
    designer.end_drag()

    assert not designer.dragging
    assert designer.drag_to(10, 10) is None
    moved = designer.active_page.field_by_id(field.id)
    assert (moved.x, moved.y) == (50, 50)


def test_remove_and_toggle(designer):
    field = designer.add_field("Temp")
    designer.select(field.id)

    assert designer.toggle_active(field.id)
    assert designer.active_page.field_by_id(field.id).is_active is False
    assert designer.remove_field(field.id)
    assert designer.selected_field_id is None
    assert designer.active_page.field_by_id(field.id) is None


def test_page_settings_only_touch_the_active_page(designer):
    designer.set_active_page(2)
    designer.set_paper_size("A5")
    designer.set_background_visible_in_print(False)

    assert designer.template.page(2).paper_size is PaperSize.A5
    assert designer.template.page(2).show_background_in_print is False
    assert designer.template.page(1).paper_size is PaperSize.A4
    with pytest.raises(ValueError):
        designer.set_active_page(9)


def test_upload_background_stores_file_and_caches_bytes(designer, tmp_path):
    assert designer.upload_background(b"first", ".png")
    first_url = designer.active_page.bg_image
    assert designer.upload_background(b"second", "jpg")
    second_url = designer.active_page.bg_image

    assert first_url != second_url
    assert second_url.endswith(".jpg")
    stored = list((tmp_path / "letterheads" / "headers").iterdir())
    assert [p.read_bytes() for p in stored] == [b"second"]
    assert designer._cache.contains(second_url)

    designer.clear_background()
    assert designer.active_page.bg_image is None


def test_persist_then_reload_round_trips_the_template(designer, store, notes):
    field = designer.add_field("Plate", is_dropdown=True, options_text="A,B")
    designer.update_field(field.id, {"x": 12.5, "rotation": 30})

    assert designer.persist()
    assert notes[-1].severity == "success"

    loaded = TemplateService(store).load()
    assert loaded == designer.template


@pytest.mark.parametrize(
    "stored",
    [
        {"pages": [{"pageNumber": 1, "fields": [{"id": "1", "x": None}]}]},
        {"pages": [{"pageNumber": "first"}]},
        {"pages": ["not-a-page"]},
    ],
)
def test_unreadable_stored_template_falls_back_to_default(store, stored):
    service = TemplateService(store)
    with store.session() as session:
        session.merge(SettingRecord(key=TEMPLATE_SETTINGS_KEY, value=stored))

    assert service.load() == default_template()
    with store.session() as session:
        assert session.get(SettingRecord, TEMPLATE_SETTINGS_KEY).value == stored
