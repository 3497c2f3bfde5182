"""Page geometry shared by every contract renderer.

:func:`layout_page` turns a :class:`Page` plus an answer map into positioned
text draw commands.  Positions are always ``x%``/``y%`` of the target page
size; only box size and font size are multiplied by the renderer's scale.
Physical renderers work in CSS pixels (1/96 inch) on the physical paper.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from modules.contracts.models import Alignment, Field, Page, PaperSize, Template

CSS_PX_PER_INCH = 96.0
MM_PER_INCH = 25.4

# Font multiplier applied by the PDF export path so rasterized text matches
# the printed output.  Re-derive when changing the rasterizer backend.
EXPORT_FONT_SCALE = 1.3


@dataclass(frozen=True, slots=True)
class TextCommand:
    key: str
    text: str
    left: float
    top: float
    width: float
    height: float
    font_size: float
    rotation: float
    alignment: Alignment


@dataclass(frozen=True, slots=True)
class PageLayout:
    page_number: int
    width: float
    height: float
    background: Optional[str]
    commands: Tuple[TextCommand, ...]


def mm_to_css_px(mm: float) -> float:
    return mm / MM_PER_INCH * CSS_PX_PER_INCH


def physical_page_size(paper: PaperSize) -> Tuple[float, float]:
    """Paper size in CSS pixels."""
    width_mm, height_mm = paper.size_mm
    return mm_to_css_px(width_mm), mm_to_css_px(height_mm)


def resolve_value(field: Field, answers: Mapping[str, str]) -> str:
    """Stored answer for ``field``, or its first option for dropdowns."""
    value = answers.get(field.key) or ""
    return value or field.default_value()


def layout_page(
    page: Page,
    answers: Mapping[str, str],
    page_width: float,
    page_height: float,
    *,
    size_scale: float = 1.0,
    font_scale: float = 1.0,
    for_output: bool = False,
) -> PageLayout:
    """Position every active field of ``page`` on a ``page_width`` x ``page_height`` surface.

    ``for_output`` applies the physical-output background rule: the letterhead
    is only carried when the page opts into showing it in print.
    """

    if for_output:
        background = page.bg_image if page.bg_image and page.show_background_in_print else None
    else:
        background = page.bg_image or None
    commands = [
        TextCommand(
            key=f.key,
            text=resolve_value(f, answers),
            left=f.x / 100.0 * page_width,
            top=f.y / 100.0 * page_height,
            width=f.width * size_scale,
            height=f.height * size_scale,
            font_size=f.font_size * font_scale,
            rotation=f.rotation,
            alignment=f.alignment,
        )
        for f in page.fields
        if f.is_active
    ]
    return PageLayout(
        page_number=page.page_number,
        width=page_width,
        height=page_height,
        background=background,
        commands=tuple(commands),
    )


def output_pages(template: Template) -> List[Page]:
    """Pages that reach print/export: ordered, empty pages after the first dropped.

    Any page after the first without active fields contributes nothing and
    is skipped.  The designer keeps listing those pages.
    """

    pages: List[Page] = []
    for index, page in enumerate(template.ordered_pages()):
        if index > 0 and not page.active_fields:
            continue
        pages.append(page)
    return pages


def layout_for_output(
    template: Template,
    answers: Mapping[str, str],
    *,
    font_scale: float = 1.0,
) -> List[PageLayout]:
    """Physical layouts (CSS pixels) for every output page.

    All pages share the first page's paper size.
    """

    width, height = physical_page_size(template.master_paper_size)
    return [
        layout_page(page, answers, width, height, font_scale=font_scale, for_output=True)
        for page in output_pages(template)
    ]


def layout_on_screen(page: Page, answers: Dict[str, str], zoom: float) -> PageLayout:
    """Interactive layout: reference resolution times ``zoom``."""

    ref_w, ref_h = page.paper_size.reference_px
    return layout_page(page, answers, ref_w * zoom, ref_h * zoom, size_scale=zoom, font_scale=zoom)


__all__ = [
    "CSS_PX_PER_INCH",
    "EXPORT_FONT_SCALE",
    "PageLayout",
    "TextCommand",
    "layout_for_output",
    "layout_on_screen",
    "layout_page",
    "mm_to_css_px",
    "output_pages",
    "physical_page_size",
    "resolve_value",
]
