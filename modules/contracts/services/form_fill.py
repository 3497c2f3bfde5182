"""Answer-map editing session for one contract instance."""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Dict, List, Optional, Tuple

from modules._infra.repository import StoreError
from modules.contracts.models import Field, Page, PaperSize, Template
from modules.contracts.services.layout import PageLayout, layout_on_screen
from notifications.models import Notification, Notify, discard
from utils.settingsmanager import SettingsManager

logger = logging.getLogger(__name__)

ZOOM_MIN = 0.6
ZOOM_MAX = 2.0
ZOOM_STEP = 0.1
INITIAL_ZOOM = 1.4
AUTO_ZOOM_FILL = 0.85

DEFAULT_DATE_FORMAT = "%Y/%m/%d"
DATE_MARKERS = ("date",)
DATE_LABEL_MARKERS = ("تاریخ",)
SERIAL_MARKERS = ("serial",)
SERIAL_LABEL_MARKERS = ("مسلسل", "شماره قرارداد")

FONT_OPTIONS = (
    ("Vazirmatn", "وزیر متن (استاندارد)"),
    ("Bahij Nazanin", "بهیج نازنین (رسمی)"),
    ("Lalezar", "لاله‌زار (ضخیم)"),
)
DEFAULT_FONT = FONT_OPTIONS[0][0]
PRESET_KEY = "answer_preset"
FONT_KEY = "active_font"


def clamp_zoom(value: float) -> float:
    return round(max(ZOOM_MIN, min(ZOOM_MAX, value)), 4)


def _matches(field: Field, key_markers: Tuple[str, ...], label_markers: Tuple[str, ...]) -> bool:
    key = field.key.lower()
    label = field.label.lower()
    return any(m in key for m in key_markers) or any(m in label for m in label_markers)


class FormFillSession:
    """Holds the answer map, zoom and visible pages while a contract is filled.

    ``answers`` is replaced wholesale on every change so views holding the
    previous mapping never see it mutate.
    """

    def __init__(
        self,
        template: Template,
        settings: SettingsManager,
        notify: Notify = discard,
        *,
        date_format: str = DEFAULT_DATE_FORMAT,
    ) -> None:
        self.template = template
        self.settings = settings
        self._notify = notify
        self.date_format = date_format
        self.answers: Dict[str, str] = {}
        self.zoom = INITIAL_ZOOM
        self.visible_pages: List[int] = [1]
        self.editing_contract_id: Optional[str] = None

    # -- lifecycle --------------------------------------------------------
    @property
    def is_new(self) -> bool:
        return self.editing_contract_id is None

    def start_new(self, count_contracts: Callable[[], int], today: Optional[date] = None) -> bool:
        """Begin a fresh contract and auto-fill date and serial fields."""

        self.editing_contract_id = None
        self.answers = {}
        self.visible_pages = [1]
        return self.auto_populate(count_contracts, today)

    def begin_edit(self, contract_id: str, answers: Dict[str, str]) -> None:
        """Reopen a stored contract; auto-fill is never run here."""

        self.editing_contract_id = contract_id
        self.answers = dict(answers)
        self.visible_pages = self.visible_pages_for(self.answers)

    def reset(self) -> None:
        self.editing_contract_id = None
        self.answers = {}
        self.visible_pages = [1]

    # -- answers ----------------------------------------------------------
    def set_value(self, key: str, value: str) -> None:
        updated = dict(self.answers)
        updated[key] = value
        self.answers = updated

    def value(self, key: str) -> str:
        return self.answers.get(key, "")

    def default_dropdown_values(self, page: Optional[Page] = None) -> bool:
        """Give every active dropdown without a value its first option.

        Returns whether anything changed; a second call with the same
        fields is a no-op.
        """

        pages = [page] if page is not None else self.template.ordered_pages()
        updates: Dict[str, str] = {}
        for p in pages:
            for f in p.active_fields:
                if f.is_dropdown and f.options and not self.answers.get(f.key) and f.key not in updates:
                    updates[f.key] = f.options[0]
        if not updates:
            return False
        self.answers = {**self.answers, **updates}
        return True

    def auto_populate(self, count_contracts: Callable[[], int], today: Optional[date] = None) -> bool:
        """Pre-fill empty date and serial fields of a new contract."""

        if not self.is_new:
            return False
        today_text = (today or date.today()).strftime(self.date_format)
        try:
            serial = str(count_contracts() + 1)
        except StoreError as exc:
            logger.warning("[form_fill] contract count failed: %s", exc)
            serial = "1"

        updates: Dict[str, str] = {}
        for page in self.template.ordered_pages():
            for f in page.active_fields:
                if self.answers.get(f.key) or updates.get(f.key):
                    continue
                if _matches(f, DATE_MARKERS, DATE_LABEL_MARKERS):
                    updates[f.key] = today_text
                elif _matches(f, SERIAL_MARKERS, SERIAL_LABEL_MARKERS):
                    updates[f.key] = serial
        if not updates:
            return False
        self.answers = {**self.answers, **updates}
        return True

    # -- navigation -------------------------------------------------------
    def focus_advance(self, page: Page, current_key: str) -> Optional[Tuple[Field, bool]]:
        """Next active field after ``current_key`` and whether to open its popover."""

        active = page.active_fields
        for index, f in enumerate(active):
            if f.key == current_key:
                if index + 1 < len(active):
                    nxt = active[index + 1]
                    return nxt, nxt.is_dropdown
                return None
        return None

    def visible_pages_for(self, answers: Dict[str, str]) -> List[int]:
        pages = [
            p.page_number
            for p in self.template.ordered_pages()
            if any(answers.get(f.key) for f in p.fields)
        ]
        return pages or [1]

    def toggle_page(self, page_number: int) -> None:
        if page_number == 1 or self.template.page(page_number) is None:
            return
        if page_number in self.visible_pages:
            self.visible_pages = [n for n in self.visible_pages if n != page_number]
        else:
            self.visible_pages = sorted(self.visible_pages + [page_number])

    # -- zoom -------------------------------------------------------------
    def reference_width(self) -> int:
        ordered = self.template.ordered_pages()
        paper = ordered[0].paper_size if ordered else PaperSize.A4
        return paper.reference_px[0]

    def compute_auto_zoom(self, container_width: float) -> float:
        self.zoom = clamp_zoom(container_width * AUTO_ZOOM_FILL / self.reference_width())
        return self.zoom

    def zoom_in(self) -> float:
        self.zoom = clamp_zoom(self.zoom + ZOOM_STEP)
        return self.zoom

    def zoom_out(self) -> float:
        self.zoom = clamp_zoom(self.zoom - ZOOM_STEP)
        return self.zoom

    def layout(self, page: Page) -> PageLayout:
        return layout_on_screen(page, self.answers, self.zoom)

    # -- local preferences -----------------------------------------------
    @property
    def active_font(self) -> str:
        return self.settings.get(FONT_KEY, DEFAULT_FONT) or DEFAULT_FONT

    def set_active_font(self, family: str) -> None:
        self.settings.set(FONT_KEY, family)

    def save_preset(self) -> None:
        self.settings.set(PRESET_KEY, dict(self.answers))
        self._notify(Notification("پیش‌نویس", "اطلاعات فعلی به عنوان پیش‌نویس (قالب) ذخیره شد", source="workspace"))

    def load_preset(self) -> bool:
        saved = self.settings.get(PRESET_KEY)
        if not isinstance(saved, dict):
            self._notify(Notification("پیش‌نویس", "هیچ پیش‌نویسی ذخیره نشده است", severity="warning", source="workspace"))
            return False
        self.answers = {str(k): str(v) for k, v in saved.items()}
        self._notify(Notification("پیش‌نویس", "قالب پیش‌نویس فراخوانی شد", source="workspace"))
        return True


__all__ = ["FONT_OPTIONS", "FormFillSession", "clamp_zoom"]
