"""Contract template model: fields positioned on pages.

Positions are percentages of the page (``x``/``y`` in 0..100, top-left
anchor); ``width``, ``height`` and ``font_size`` are pixels at the paper's
reference resolution.  Instances are treated as immutable values: every edit
produces a new object through :func:`dataclasses.replace` so readers never
observe a half-applied change.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

DEFAULT_FIELD_HEIGHT = 30
DEFAULT_TEMPLATE_ID = "default"


class _StrEnum(str, Enum):
    """Enum subclass that compares/serialises as its value."""

    def __str__(self) -> str:  # pragma: no cover - trivial
        return str(self.value)

    @classmethod
    def values(cls) -> Set[str]:
        return {member.value for member in cls}


class PaperSize(_StrEnum):
    A4 = "A4"
    A5 = "A5"

    @property
    def reference_px(self) -> Tuple[int, int]:
        """Width and height of the on-screen reference canvas."""
        return _REFERENCE_PX[self]

    @property
    def size_mm(self) -> Tuple[float, float]:
        return _SIZE_MM[self]

    @classmethod
    def parse(cls, value: Any) -> "PaperSize":
        try:
            return cls(str(value))
        except ValueError:
            return cls.A4


_REFERENCE_PX = {PaperSize.A4: (595, 842), PaperSize.A5: (420, 595)}
_SIZE_MM = {PaperSize.A4: (210.0, 297.0), PaperSize.A5: (148.0, 210.0)}


class Alignment(_StrEnum):
    LEFT = "L"
    CENTER = "C"
    RIGHT = "R"

    @classmethod
    def parse(cls, value: Any) -> "Alignment":
        try:
            return cls(str(value))
        except ValueError:
            return cls.CENTER


@dataclass(frozen=True, slots=True)
class Field:
    id: str
    key: str
    label: str
    x: float = 40.0
    y: float = 40.0
    width: float = 150.0
    height: float = DEFAULT_FIELD_HEIGHT
    font_size: float = 14.0
    rotation: float = 0.0
    alignment: Alignment = Alignment.RIGHT
    is_active: bool = True
    is_dropdown: bool = False
    options: Tuple[str, ...] = ()

    def default_value(self) -> str:
        """Value shown when the answer map holds nothing for this field."""
        if self.is_dropdown and self.options:
            return self.options[0]
        return ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "key": self.key,
            "label": self.label,
            "isActive": self.is_active,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "fontSize": self.font_size,
            "rotation": self.rotation,
            "alignment": self.alignment.value,
            "isDropdown": self.is_dropdown,
        }
        if self.is_dropdown:
            data["options"] = list(self.options)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Field":
        field_id = str(data.get("id") or "")
        options = data.get("options") or []
        return cls(
            id=field_id,
            key=str(data.get("key") or f"f_{field_id}"),
            label=str(data.get("label") or ""),
            x=float(data.get("x", 40)),
            y=float(data.get("y", 40)),
            width=float(data.get("width", 150)),
            height=float(DEFAULT_FIELD_HEIGHT if data.get("height") is None else data["height"]),
            font_size=float(data.get("fontSize", 14)),
            rotation=float(data.get("rotation", 0)),
            alignment=Alignment.parse(data.get("alignment", "R")),
            is_active=bool(data.get("isActive", True)),
            is_dropdown=bool(data.get("isDropdown", False)),
            options=tuple(str(o) for o in options),
        )


@dataclass(frozen=True, slots=True)
class Page:
    page_number: int
    paper_size: PaperSize = PaperSize.A4
    bg_image: Optional[str] = None
    show_background_in_print: bool = True
    fields: Tuple[Field, ...] = ()

    @property
    def active_fields(self) -> List[Field]:
        return [f for f in self.fields if f.is_active]

    def field_by_id(self, field_id: str) -> Optional[Field]:
        for item in self.fields:
            if item.id == field_id:
                return item
        return None

    def with_fields(self, fields: List[Field]) -> "Page":
        return replace(self, fields=tuple(fields))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "pageNumber": self.page_number,
            "paperSize": self.paper_size.value,
            "showBackgroundInPrint": self.show_background_in_print,
            "fields": [f.to_dict() for f in self.fields],
        }
        if self.bg_image:
            data["bgImage"] = self.bg_image
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Page":
        return cls(
            page_number=int(data.get("pageNumber", 1)),
            paper_size=PaperSize.parse(data.get("paperSize", "A4")),
            bg_image=data.get("bgImage") or None,
            show_background_in_print=bool(data.get("showBackgroundInPrint", True)),
            fields=tuple(Field.from_dict(f) for f in data.get("fields") or []),
        )


@dataclass(frozen=True, slots=True)
class Template:
    id: str = DEFAULT_TEMPLATE_ID
    pages: Tuple[Page, ...] = field(default_factory=tuple)

    def ordered_pages(self) -> List[Page]:
        return sorted(self.pages, key=lambda p: p.page_number)

    def page(self, page_number: int) -> Optional[Page]:
        for item in self.pages:
            if item.page_number == page_number:
                return item
        return None

    @property
    def master_paper_size(self) -> PaperSize:
        """Paper size of the first page; governs physical output."""
        ordered = self.ordered_pages()
        return ordered[0].paper_size if ordered else PaperSize.A4

    def replace_page(self, page: Page) -> "Template":
        pages = [page if p.page_number == page.page_number else p for p in self.pages]
        return replace(self, pages=tuple(pages))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "pages": [p.to_dict() for p in self.ordered_pages()]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Template":
        if not isinstance(data, dict):
            raise ValueError("template document must be an object")
        pages = data.get("pages") or []
        if not isinstance(pages, list):
            raise ValueError("template pages must be a list")
        return cls(
            id=str(data.get("id") or DEFAULT_TEMPLATE_ID),
            pages=tuple(Page.from_dict(p) for p in pages),
        )


def _starter_field(field_id: str, key: str, label: str, x: float, y: float, **extra: Any) -> Field:
    return Field(id=field_id, key=key, label=label, x=x, y=y, **extra)


def default_pages() -> Tuple[Page, ...]:
    """Three A4 pages; the first carries the standard contract fields."""

    first = (
        _starter_field("1", "name", "نام مشتری", 60, 20),
        _starter_field("2", "father_name", "نام پدر", 60, 25),
        _starter_field("3", "tazkira", "نمبر پلیت", 60, 30),
        _starter_field("4", "phone", "شماره تماس", 60, 35),
        _starter_field("5", "date1", "تاریخ قرارداد", 10, 10, width=120, alignment=Alignment.LEFT),
        _starter_field("6", "serial", "شماره قرارداد", 75, 10, width=100),
        _starter_field(
            "7",
            "tracker_model",
            "مدل ردیاب",
            60,
            40,
            is_dropdown=True,
            options=("GT06", "TK103", "ST901"),
        ),
    )
    return (
        Page(page_number=1, fields=first),
        Page(page_number=2),
        Page(page_number=3),
    )


def default_template() -> Template:
    return Template(id=DEFAULT_TEMPLATE_ID, pages=default_pages())
