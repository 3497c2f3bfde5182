"""Loading and saving the contract template record."""

from __future__ import annotations

import logging
from dataclasses import replace

from modules._infra.repository import Store
from modules.contracts.models import Template, default_pages, default_template
from modules.contracts.models.records import SettingRecord

logger = logging.getLogger(__name__)

TEMPLATE_SETTINGS_KEY = "contract_template"


class TemplateService:
    """Reads and upserts the single template row in ``settings``."""

    def __init__(self, store: Store) -> None:
        self.store = store

    def load(self) -> Template:
        """Return the stored template, seeding the default skeleton when absent.

        A stored template without pages is completed with the default pages;
        an unreadable one is left in place and the default is returned.
        """

        with self.store.session() as session:
            row = session.get(SettingRecord, TEMPLATE_SETTINGS_KEY)
            value = row.value if row is not None else None
        if not value:
            template = default_template()
            self.save(template)
            logger.info("[templates] seeded default template")
            return template
        try:
            template = Template.from_dict(value)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("[templates] stored template is unreadable, using the default: %s", exc)
            return default_template()
        if not template.pages:
            template = replace(template, pages=default_pages())
        return template

    def save(self, template: Template) -> None:
        with self.store.session() as session:
            session.merge(SettingRecord(key=TEMPLATE_SETTINGS_KEY, value=template.to_dict()))


__all__ = ["TEMPLATE_SETTINGS_KEY", "TemplateService"]
