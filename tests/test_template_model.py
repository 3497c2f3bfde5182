from __future__ import annotations

import pytest

from modules.contracts.models import (
    Alignment,
    Field,
    Page,
    PaperSize,
    Template,
    default_template,
)


def test_default_template_has_three_pages_with_fields_on_first():
    template = default_template()

    assert [p.page_number for p in template.ordered_pages()] == [1, 2, 3]
    first = template.page(1)
    keys = [f.key for f in first.fields]
    assert "tazkira" in keys
    assert "date1" in keys
    assert template.page(2).fields == ()
    assert template.master_paper_size is PaperSize.A4


def test_field_dict_uses_camel_case_and_writes_options_only_for_dropdowns():
    plain = Field(id="1", key="name", label="Name", font_size=18, is_active=False)
    dropdown = Field(id="2", key="model", label="Model", is_dropdown=True, options=("A", "B"))

    plain_data = plain.to_dict()
    assert plain_data["fontSize"] == 18
    assert plain_data["isActive"] is False
    assert "options" not in plain_data
    assert dropdown.to_dict()["options"] == ["A", "B"]


def test_template_from_stored_document():
    doc = {
        "id": "main",
        "pages": [
            {
                "pageNumber": 2,
                "paperSize": "A5",
                "bgImage": "https://cdn.test/h.png",
                "showBackgroundInPrint": False,
                "fields": [{"id": "9", "key": "f_9", "label": "Plate", "x": 12, "y": 30, "alignment": "L"}],
            },
            {"pageNumber": 1, "fields": []},
        ],
    }

    template = Template.from_dict(doc)

    assert template.id == "main"
    assert [p.page_number for p in template.ordered_pages()] == [1, 2]
    second = template.page(2)
    assert second.paper_size is PaperSize.A5
    assert second.show_background_in_print is False
    assert second.fields[0].alignment is Alignment.LEFT
    assert second.fields[0].height == 30
    assert template.to_dict()["pages"][0]["pageNumber"] == 1


def test_missing_attributes_take_defaults():
    field = Field.from_dict({"id": "5"})
    page = Page.from_dict({})

    assert field.key == "f_5"
    assert (field.x, field.y, field.width, field.font_size) == (40, 40, 150, 14)
    assert field.is_active is True
    assert page.page_number == 1
    assert page.paper_size is PaperSize.A4


def test_unknown_alignment_falls_back_to_center():
    assert Alignment.parse("Z") is Alignment.CENTER
    assert PaperSize.parse("Letter") is PaperSize.A4


@pytest.mark.parametrize("doc", [[], "template", {"pages": {"pageNumber": 1}}])
def test_malformed_template_documents_are_rejected(doc):
    with pytest.raises(ValueError):
        Template.from_dict(doc)


def test_reference_and_physical_sizes():
    assert PaperSize.A4.reference_px == (595, 842)
    assert PaperSize.A5.reference_px == (420, 595)
    assert PaperSize.A5.size_mm == (148, 210)


def test_zero_height_survives_a_round_trip():
    field = Field(id="9", key="stamp", label="Stamp", height=0)

    restored = Field.from_dict(field.to_dict())

    assert restored.height == 0
    assert Field.from_dict({"id": "9", "height": None}).height == 30
