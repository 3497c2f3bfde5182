"""Full-store JSON backup and destructive restore."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import delete, select

from modules._infra.repository import Store
from modules.clients.models import Client
from modules.clients.models.schemas import ClientRead
from modules.contracts.models.records import ContractRecord, SettingRecord
from modules.contracts.models.schemas import ContractRead
from modules.finance.models import Transaction
from modules.finance.models.schemas import TransactionRead
from modules.users.models import Role, User
from modules.users.models.schemas import RoleRead, UserRead
from modules.users.permissions import ADMIN_ROLE_ID, ADMIN_USERNAME

logger = logging.getLogger(__name__)

BACKUP_VERSION = "2.0.0"


class SettingRow(BaseModel):
    key: str
    value: Any = None


class BackupDocument(BaseModel):
    """Shape of a backup file; every table list is optional."""

    version: Optional[str] = None
    exportDate: Optional[datetime] = None
    settings: List[SettingRow] = Field(default_factory=list)
    clients: List[ClientRead] = Field(default_factory=list)
    contracts: List[ContractRead] = Field(default_factory=list)
    users: List[UserRead] = Field(default_factory=list)
    roles: List[RoleRead] = Field(default_factory=list)
    transactions: List[TransactionRead] = Field(default_factory=list)


def backup_file_name(moment: datetime) -> str:
    return f"trackdesk_backup_{moment.strftime('%Y-%m-%d')}.json"


class BackupService:
    def __init__(self, store: Store) -> None:
        self.store = store

    def snapshot(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now()
        with self.store.session() as session:
            doc = BackupDocument(
                version=BACKUP_VERSION,
                exportDate=now,
                settings=[SettingRow(key=r.key, value=r.value) for r in session.execute(select(SettingRecord)).scalars()],
                clients=[ClientRead.model_validate(r) for r in session.execute(select(Client)).scalars()],
                contracts=[ContractRead.model_validate(r) for r in session.execute(select(ContractRecord)).scalars()],
                users=[UserRead.model_validate(r) for r in session.execute(select(User)).scalars()],
                roles=[RoleRead.model_validate(r) for r in session.execute(select(Role)).scalars()],
                transactions=[TransactionRead.model_validate(r) for r in session.execute(select(Transaction)).scalars()],
            )
        return doc.model_dump(mode="json")

    def export_to(self, directory: str | Path, now: Optional[datetime] = None) -> Path:
        now = now or datetime.now()
        target = Path(directory) / backup_file_name(now)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(self.snapshot(now), f, ensure_ascii=False, indent=2)
        logger.info("[backup] exported %s", target)
        return target

    def parse(self, raw: str | bytes) -> BackupDocument:
        """Validate a backup file body; raises ``ValueError`` when malformed."""

        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("backup file must contain a JSON object")
        return BackupDocument.model_validate(data)

    def import_file(self, path: str | Path) -> BackupDocument:
        with open(path, "r", encoding="utf-8") as f:
            doc = self.parse(f.read())
        self.restore(doc)
        return doc

    def restore(self, doc: BackupDocument) -> None:
        """Replace the store contents with ``doc``.

        The ``admin`` account and the ``admin_role`` role survive the wipe;
        their backed-up versions are merged onto the existing rows.
        """

        with self.store.session() as session:
            session.execute(delete(ContractRecord))
            session.execute(delete(Transaction))
            session.execute(delete(Client))
            session.execute(delete(User).where(User.username != ADMIN_USERNAME))
            session.execute(delete(Role).where(Role.id != ADMIN_ROLE_ID))
            session.execute(delete(SettingRecord))

            for role in doc.roles:
                session.merge(Role(**role.model_dump()))
            admin = session.execute(select(User).where(User.username == ADMIN_USERNAME)).scalar_one_or_none()
            for user in doc.users:
                if user.username == ADMIN_USERNAME and admin is not None:
                    admin.password = user.password
                    admin.role_id = user.role_id
                    continue
                session.merge(User(**user.model_dump()))
            for client in doc.clients:
                session.merge(Client(**client.model_dump()))
            for contract in doc.contracts:
                session.merge(ContractRecord(**contract.model_dump()))
            for entry in doc.transactions:
                session.merge(Transaction(**entry.model_dump()))
            for setting in doc.settings:
                session.merge(SettingRecord(key=setting.key, value=setting.value))
        logger.info(
            "[backup] restored %d clients, %d contracts, %d transactions",
            len(doc.clients),
            len(doc.contracts),
            len(doc.transactions),
        )


__all__ = ["BACKUP_VERSION", "BackupDocument", "BackupService", "backup_file_name"]
