"""Permission catalogue and the rules deciding what a user may see."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

ADMIN_USERNAME = "admin"
ADMIN_ROLE_ID = "admin_role"
EMPLOYEE_ROLE_ID = "employee_role"
SYSTEM_ROLE_IDS = frozenset({ADMIN_ROLE_ID, EMPLOYEE_ROLE_ID})


@dataclass(frozen=True)
class Permission:
    id: str
    label: str
    parent: Optional[str] = None


PERMISSIONS: Sequence[Permission] = (
    Permission("workspace", "دسترسی به میز کار"),
    Permission("workspace_create", "ایجاد پرونده جدید", "workspace"),
    Permission("workspace_search", "جستجوی مشتریان", "workspace"),
    Permission("archive", "مشاهده بایگانی"),
    Permission("archive_print", "چاپ در بایگانی", "archive"),
    Permission("archive_edit", "ویرایش در بایگانی", "archive"),
    Permission("archive_delete", "حذف سوابق بایگانی", "archive"),
    Permission("accounting", "دسترسی به امور مالی"),
    Permission("reports", "مشاهده گزارشات"),
    Permission("settings", "دسترسی به تنظیمات"),
    Permission("settings_designer", "مدیریت بوم طراحی", "settings"),
    Permission("settings_users", "مدیریت کاربران", "settings"),
    Permission("settings_backup", "پشتیبان‌گیری", "settings"),
)
ALL_PERMISSION_IDS = tuple(p.id for p in PERMISSIONS)
TAB_ORDER = ("workspace", "archive", "accounting", "reports", "settings")
EMPLOYEE_TABS = ("workspace", "archive")
EMPLOYEE_PERMS = ("workspace", "archive", "archive_print", "archive_edit")


@dataclass(frozen=True)
class Access:
    """Resolved permissions of the logged-in user."""

    username: str
    role_id: Optional[str]
    perms: frozenset

    @classmethod
    def for_user(cls, username: str, role_id: Optional[str], role_perms: Iterable[str]) -> "Access":
        if username == ADMIN_USERNAME:
            perms = frozenset(ALL_PERMISSION_IDS)
        else:
            perms = frozenset(role_perms or ())
        return cls(username=username, role_id=role_id, perms=perms)

    @property
    def is_admin(self) -> bool:
        return self.username == ADMIN_USERNAME

    @property
    def is_strict_employee(self) -> bool:
        return self.role_id == EMPLOYEE_ROLE_ID and not self.is_admin

    def has(self, perm: str) -> bool:
        return self.is_admin or perm in self.perms

    # -- workspace ------------------------------------------------------
    @property
    def can_search(self) -> bool:
        return not self.is_strict_employee and self.has("workspace_search")

    @property
    def can_create(self) -> bool:
        return not self.is_strict_employee and self.has("workspace_create")

    # -- archive ----------------------------------------------------------
    @property
    def can_edit_contracts(self) -> bool:
        return self.is_strict_employee or self.has("archive_edit")

    @property
    def can_print(self) -> bool:
        return self.is_strict_employee or self.has("archive_print")

    @property
    def can_delete_contracts(self) -> bool:
        return not self.is_strict_employee and self.has("archive_delete")

    def visible_tabs(self) -> List[str]:
        if self.is_admin:
            return list(TAB_ORDER)
        if self.is_strict_employee:
            return [t for t in TAB_ORDER if t in EMPLOYEE_TABS]
        return [t for t in TAB_ORDER if t in self.perms]


def first_allowed_tab(access: Access, current: Optional[str] = None) -> Optional[str]:
    """Tab to show: ``current`` when allowed, else the first permitted one."""

    tabs = access.visible_tabs()
    if current in tabs:
        return current
    return tabs[0] if tabs else None


__all__ = [
    "ADMIN_ROLE_ID",
    "ADMIN_USERNAME",
    "ALL_PERMISSION_IDS",
    "Access",
    "EMPLOYEE_PERMS",
    "EMPLOYEE_ROLE_ID",
    "PERMISSIONS",
    "Permission",
    "SYSTEM_ROLE_IDS",
    "TAB_ORDER",
    "first_allowed_tab",
]
