# utils/state.py

"""Explicit application state handed to every window and panel.

:func:`build_context` wires the services once at startup; nothing reads
module-level globals afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from modules._infra.http_client import HttpClient
from modules._infra.repository import Store, StoreError
from modules.backup.services import BackupService
from modules.clients.services import ClientService
from modules.contracts.models import Template, default_template
from modules.contracts.services.blob_cache import BlobCache
from modules.contracts.services.contracts import ContractService
from modules.contracts.services.letterheads import LetterheadStorage
from modules.contracts.services.templates import TemplateService
from modules.finance.services import LedgerService
from modules.reports.services import ReportService
from modules.users.models.schemas import UserRead
from modules.users.permissions import Access
from modules.users.services import UserService
from notifications.models import Notification, Notify
from utils.app_settings import AppConfig
from utils.settingsmanager import SettingsManager

logger = logging.getLogger(__name__)

SESSION_KEY = "session_user"


@dataclass
class AppContext:
    config: AppConfig
    store: Store
    settings: SettingsManager
    http: HttpClient
    notify: Notify
    cache: BlobCache
    letterheads: LetterheadStorage
    templates: TemplateService
    users: UserService
    clients: ClientService
    contracts: ContractService
    ledger: LedgerService
    reports: ReportService
    backup: BackupService
    template: Template = field(default_factory=default_template)
    current_user: Optional[UserRead] = None
    access: Optional[Access] = None
    _template_listeners: List[Callable[[Template], None]] = field(default_factory=list)

    # -- template ---------------------------------------------------------
    def load_template(self) -> Template:
        """Load the stored template and warm the image cache with its letterheads."""

        try:
            self.template = self.templates.load()
        except StoreError as exc:
            logger.warning("[state] failed to load template: %s", exc)
            self.notify(Notification("قالب", "بارگذاری قالب ناموفق بود", severity="error"))
        self.cache.warm(p.bg_image for p in self.template.ordered_pages() if p.bg_image)
        return self.template

    def set_template(self, template: Template) -> None:
        self.template = template
        for listener in list(self._template_listeners):
            listener(template)

    def on_template_changed(self, listener: Callable[[Template], None]) -> None:
        self._template_listeners.append(listener)

    # -- session ----------------------------------------------------------
    def sign_in(self, user: UserRead) -> Access:
        self.current_user = user
        self.access = self.users.access_for(user)
        self.settings.set(SESSION_KEY, {"id": user.id, "username": user.username})
        logger.info("[state] signed in as %s", user.username)
        return self.access

    def restore_session(self) -> bool:
        """Re-enter the remembered session when that user still exists."""

        saved = self.settings.get(SESSION_KEY)
        if not isinstance(saved, dict) or not saved.get("id"):
            return False
        user = self.users.get_user(str(saved["id"]))
        if user is None:
            self.settings.remove(SESSION_KEY)
            return False
        self.current_user = user
        self.access = self.users.access_for(user)
        return True

    def sign_out(self) -> None:
        self.current_user = None
        self.access = None
        self._template_listeners.clear()
        self.settings.remove(SESSION_KEY)

    def close(self) -> None:
        self.http.close()
        self.cache.close()


def build_context(config: AppConfig, notify: Notify) -> AppContext:
    store = Store(config.database_url)
    http = HttpClient()
    settings = SettingsManager(config.settings_path)
    templates = TemplateService(store)
    users = UserService(store)
    users.ensure_defaults()
    return AppContext(
        config=config,
        store=store,
        settings=settings,
        http=http,
        notify=notify,
        cache=BlobCache(config.cache_path, http.get_bytes),
        letterheads=LetterheadStorage(config.letterhead_dir, config.letterhead_base_url),
        templates=templates,
        users=users,
        clients=ClientService(store),
        contracts=ContractService(store, notify),
        ledger=LedgerService(store, notify),
        reports=ReportService(store),
        backup=BackupService(store),
    )


__all__ = ["AppContext", "build_context"]
