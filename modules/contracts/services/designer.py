"""Authoring operations for the contract template.

:class:`TemplateDesigner` owns the in-session :class:`Template` while the
designer tab is open.  Every edit builds a new template value and hands it to
the registered listeners; nothing is written to the store until
:meth:`TemplateDesigner.persist` is called.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional

from modules._infra.ids import time_id
from modules._infra.repository import StoreError
from modules.contracts.models import DEFAULT_FIELD_HEIGHT, Alignment, Field, Page, PaperSize, Template
from modules.contracts.services.blob_cache import BlobCache
from modules.contracts.services.letterheads import LetterheadStorage
from modules.contracts.services.templates import TemplateService
from notifications.models import Notification, Notify, discard

logger = logging.getLogger(__name__)

DEFAULT_POSITION = (40.0, 40.0)
DRAG_MIN = 0.0
DRAG_MAX = 98.0

_OPTION_SPLIT = re.compile(r"[,،\n]")
_NUMERIC = {"x", "y", "width", "height", "font_size", "rotation"}
_ALIASES = {
    "fontSize": "font_size",
    "isActive": "is_active",
    "isDropdown": "is_dropdown",
}

TemplateListener = Callable[[Template], None]


def split_options(raw: str | Iterable[str] | None) -> tuple[str, ...]:
    """Split a delimited option string on commas, Arabic commas and newlines."""

    if raw is None:
        return ()
    parts = _OPTION_SPLIT.split(raw) if isinstance(raw, str) else list(raw)
    return tuple(p.strip() for p in parts if p and p.strip())


def clamp_percent(value: float) -> float:
    return max(DRAG_MIN, min(DRAG_MAX, value))


class TemplateDesigner:
    def __init__(
        self,
        template: Template,
        templates: TemplateService,
        storage: LetterheadStorage,
        cache: BlobCache,
        notify: Notify = discard,
    ) -> None:
        self._template = template
        self._templates = templates
        self._storage = storage
        self._cache = cache
        self._notify = notify
        self._listeners: List[TemplateListener] = []
        ordered = template.ordered_pages()
        self.active_page_number = ordered[0].page_number if ordered else 1
        self.selected_field_id: Optional[str] = None
        self._drag: Optional[tuple[str, float, float]] = None

    # -- state ------------------------------------------------------------
    @property
    def template(self) -> Template:
        return self._template

    @property
    def active_page(self) -> Page:
        page = self._template.page(self.active_page_number)
        if page is None:
            page = Page(page_number=self.active_page_number)
        return page

    @property
    def selected_field(self) -> Optional[Field]:
        if self.selected_field_id is None:
            return None
        return self.active_page.field_by_id(self.selected_field_id)

    def subscribe(self, listener: TemplateListener) -> None:
        self._listeners.append(listener)

    def _commit(self, template: Template) -> None:
        self._template = template
        for listener in list(self._listeners):
            listener(template)

    def _update_page(self, **changes: Any) -> None:
        page = replace(self.active_page, **changes)
        if self._template.page(page.page_number) is None:
            self._commit(replace(self._template, pages=self._template.pages + (page,)))
        else:
            self._commit(self._template.replace_page(page))

    def _map_fields(self, field_id: str, fn: Callable[[Field], Optional[Field]]) -> bool:
        page = self.active_page
        found = False
        fields: List[Field] = []
        for item in page.fields:
            if item.id == field_id:
                found = True
                updated = fn(item)
                if updated is not None:
                    fields.append(updated)
            else:
                fields.append(item)
        if found:
            self._update_page(fields=tuple(fields))
        return found

    # -- pages ------------------------------------------------------------
    def set_active_page(self, page_number: int) -> None:
        if self._template.page(page_number) is None:
            raise ValueError(f"template has no page {page_number}")
        self.active_page_number = page_number
        self.selected_field_id = None
        self._drag = None

    def set_paper_size(self, size: PaperSize | str) -> None:
        self._update_page(paper_size=PaperSize(str(size)))

    def set_background_visible_in_print(self, visible: bool) -> None:
        self._update_page(show_background_in_print=bool(visible))

    def upload_background(self, data: bytes, extension: str = "png") -> bool:
        """Replace the active page's letterhead with ``data``."""

        previous = self.active_page.bg_image
        if previous:
            self._storage.remove(previous)
        try:
            url = self._storage.upload(data, extension)
        except OSError as exc:
            logger.warning("[designer] letterhead upload failed: %s", exc)
            self._notify(Notification("سربرگ", "آپلود تصویر ناموفق بود", severity="error", source="designer"))
            return False
        self._update_page(bg_image=url)
        self._cache.put(url, data)
        self._notify(Notification("سربرگ", "تصویر سربرگ بارگذاری شد", severity="success", source="designer"))
        return True

    def clear_background(self) -> None:
        self._update_page(bg_image=None)
        self._notify(Notification("سربرگ", "تصویر حذف شد", source="designer"))

    # -- fields -----------------------------------------------------------
    def add_field(
        self,
        label: str,
        *,
        width: float = 150,
        font_size: float = 14,
        alignment: Alignment | str = Alignment.RIGHT,
        is_dropdown: bool = False,
        options_text: str = "",
    ) -> Optional[Field]:
        """Append a new field at the default position of the active page.

        Returns ``None`` (after a warning notification) when ``label`` is
        empty; the template is left unchanged in that case.
        """

        label = (label or "").strip()
        if not label:
            self._notify(
                Notification("المان جدید", "نام المان نمی‌تواند خالی باشد", severity="warning", source="designer")
            )
            return None
        field_id = time_id()
        x, y = DEFAULT_POSITION
        new_field = Field(
            id=field_id,
            key=f"f_{field_id}",
            label=label,
            x=x,
            y=y,
            width=float(width),
            height=DEFAULT_FIELD_HEIGHT,
            font_size=float(font_size),
            rotation=0.0,
            alignment=Alignment.parse(alignment),
            is_active=True,
            is_dropdown=bool(is_dropdown),
            options=split_options(options_text) if is_dropdown else (),
        )
        self._update_page(fields=self.active_page.fields + (new_field,))
        self._notify(Notification("المان جدید", "المان جدید به بوم اضافه شد", severity="success", source="designer"))
        return new_field

    def update_field(self, field_id: str, changes: Dict[str, Any]) -> bool:
        """Merge ``changes`` into the field, coercing numeric properties."""

        clean: Dict[str, Any] = {}
        for raw_key, value in changes.items():
            key = _ALIASES.get(raw_key, raw_key)
            if key in _NUMERIC:
                try:
                    clean[key] = float(value)
                except (TypeError, ValueError):
                    logger.debug("[designer] ignoring non-numeric %s=%r", key, value)
            elif key == "alignment":
                clean[key] = Alignment.parse(value)
            elif key == "options":
                clean[key] = split_options(value)
            elif key in ("is_active", "is_dropdown"):
                clean[key] = bool(value)
            elif key in ("label", "key"):
                clean[key] = str(value)
            else:
                logger.debug("[designer] ignoring unknown field property %s", raw_key)
        if not clean:
            return False
        return self._map_fields(field_id, lambda f: replace(f, **clean))

    def remove_field(self, field_id: str) -> bool:
        removed = self._map_fields(field_id, lambda f: None)
        if removed:
            if self.selected_field_id == field_id:
                self.selected_field_id = None
            self._notify(Notification("المان", "المان حذف شد", source="designer"))
        return removed

    def toggle_active(self, field_id: str) -> bool:
        return self._map_fields(field_id, lambda f: replace(f, is_active=not f.is_active))

    # -- selection --------------------------------------------------------
    def select(self, field_id: str) -> None:
        if self.active_page.field_by_id(field_id) is not None:
            self.selected_field_id = field_id

    def clear_selection(self) -> None:
        self.selected_field_id = None

    # -- dragging ---------------------------------------------------------
    def begin_drag(self, field_id: str, canvas_width: float, canvas_height: float) -> None:
        """Start dragging ``field_id`` across a canvas of the given pixel size."""

        if canvas_width <= 0 or canvas_height <= 0:
            return
        self.select(field_id)
        if self.selected_field_id == field_id:
            self._drag = (field_id, float(canvas_width), float(canvas_height))

    def drag_to(self, pointer_x: float, pointer_y: float) -> Optional[tuple[float, float]]:
        """Move the dragged field to a canvas-relative pointer position."""

        if self._drag is None:
            return None
        field_id, width, height = self._drag
        x = clamp_percent(pointer_x / width * 100.0)
        y = clamp_percent(pointer_y / height * 100.0)
        self._map_fields(field_id, lambda f: replace(f, x=x, y=y))
        return x, y

    def end_drag(self) -> None:
        self._drag = None

    @property
    def dragging(self) -> bool:
        return self._drag is not None

    # -- persistence ------------------------------------------------------
    def persist(self) -> bool:
        try:
            self._templates.save(self._template)
        except StoreError as exc:
            logger.warning("[designer] failed to persist template: %s", exc)
            self._notify(Notification("قالب", "ذخیره قالب ناموفق بود", severity="error", source="designer"))
            return False
        self._notify(
            Notification("قالب", "قالب طراحی در پایگاه داده تثبیت شد", severity="success", source="designer")
        )
        return True


__all__ = ["TemplateDesigner", "clamp_percent", "split_options"]
