from __future__ import annotations

import pytest

from modules.contracts.models import Field, Page, PaperSize, Template
from modules.contracts.services.layout import (
    EXPORT_FONT_SCALE,
    layout_for_output,
    layout_on_screen,
    layout_page,
    output_pages,
    physical_page_size,
)


def _page(number: int, *fields: Field, **extra) -> Page:
    return Page(page_number=number, fields=tuple(fields), **extra)


def test_position_is_percentage_of_the_surface_regardless_of_scale():
    field = Field(id="1", key="name", label="Name", x=50, y=25, width=100, font_size=10)
    page = _page(1, field)

    small = layout_page(page, {"name": "Ali"}, 100, 200)
    large = layout_page(page, {"name": "Ali"}, 1000, 2000, size_scale=3, font_scale=2)

    assert (small.commands[0].left, small.commands[0].top) == (50, 50)
    assert (large.commands[0].left, large.commands[0].top) == (500, 500)
    assert large.commands[0].width == 300
    assert large.commands[0].font_size == 20
    assert small.commands[0].text == "Ali"


def test_inactive_fields_are_not_laid_out():
    page = _page(
        1,
        Field(id="1", key="a", label="A"),
        Field(id="2", key="b", label="B", is_active=False),
    )
    assert [c.key for c in layout_page(page, {}, 595, 842).commands] == ["a"]


def test_dropdown_without_answer_shows_first_option():
    page = _page(1, Field(id="1", key="tier", label="Tier", is_dropdown=True, options=("Bronze", "Silver")))

    assert layout_page(page, {}, 595, 842).commands[0].text == "Bronze"
    assert layout_page(page, {"tier": "Silver"}, 595, 842).commands[0].text == "Silver"


def test_empty_pages_after_the_first_are_skipped():
    template = Template(
        pages=(
            _page(1),
            _page(2),
            _page(3, Field(id="1", key="x", label="X")),
            _page(4, Field(id="2", key="y", label="Y", is_active=False)),
        )
    )
    assert [p.page_number for p in output_pages(template)] == [1, 3]


def test_output_uses_master_paper_size_and_print_background_rule():
    template = Template(
        pages=(
            _page(1, Field(id="1", key="x", label="X"), paper_size=PaperSize.A5, bg_image="u1", show_background_in_print=False),
            _page(2, Field(id="2", key="y", label="Y"), paper_size=PaperSize.A4, bg_image="u2"),
        )
    )

    layouts = layout_for_output(template, {}, font_scale=EXPORT_FONT_SCALE)

    width, height = physical_page_size(PaperSize.A5)
    assert all((l.width, l.height) == (width, height) for l in layouts)
    assert layouts[0].background is None
    assert layouts[1].background == "u2"
    assert layouts[0].commands[0].font_size == pytest.approx(14 * EXPORT_FONT_SCALE)


def test_on_screen_layout_keeps_background_and_scales_with_zoom():
    page = _page(1, Field(id="1", key="x", label="X", x=10, y=10, width=100), bg_image="u1", show_background_in_print=False)

    layout = layout_on_screen(page, {}, 2.0)

    assert (layout.width, layout.height) == (1190, 1684)
    assert layout.background == "u1"
    assert layout.commands[0].left == pytest.approx(119)
    assert layout.commands[0].width == 200


def test_a4_physical_size_in_css_pixels():
    width, height = physical_page_size(PaperSize.A4)
    assert width == pytest.approx(793.7, abs=0.1)
    assert height == pytest.approx(1122.5, abs=0.1)
