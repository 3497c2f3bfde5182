from __future__ import annotations

import json
from datetime import datetime

import pytest

from modules._infra.repository import Store
from modules.backup.services import BACKUP_VERSION, BackupService, backup_file_name
from modules.clients.models.schemas import ClientCreate
from modules.clients.services import ClientService
from modules.contracts.models import default_template
from modules.contracts.services.contracts import ContractService
from modules.contracts.services.templates import TemplateService
from modules.finance.models.schemas import TransactionCreate
from modules.finance.services import LedgerService
from modules.users.models.schemas import UserUpsert
from modules.users.permissions import ADMIN_ROLE_ID, Access
from modules.users.services import UserService

ADMIN = Access.for_user("admin", ADMIN_ROLE_ID, ())


def _populate(store: Store) -> None:
    users = UserService(store)
    users.ensure_defaults()
    users.save_user(UserUpsert(username="sara", password="1"))
    client = ClientService(store).create(ClientCreate(name="Ali", tazkira="KBL-1"))
    ContractService(store).create(
        client_id=client.id, client_name="Ali", answers={"name": "Ali"}, template_id="default",
        creator=ADMIN, creator_id=None,
    )
    LedgerService(store).add(TransactionCreate(client_id=client.id, type="charge", amount=700))
    TemplateService(store).save(default_template())


def test_backup_file_name():
    assert backup_file_name(datetime(2024, 2, 3, 10, 0)) == "trackdesk_backup_2024-02-03.json"


def test_export_writes_every_table(store, tmp_path):
    _populate(store)

    path = BackupService(store).export_to(tmp_path, now=datetime(2024, 2, 3))
    data = json.loads(path.read_text(encoding="utf-8"))

    assert path.name == "trackdesk_backup_2024-02-03.json"
    assert data["version"] == BACKUP_VERSION
    assert [len(data[k]) for k in ("clients", "contracts", "transactions")] == [1, 1, 1]
    assert {u["username"] for u in data["users"]} == {"admin", "sara"}
    assert any(s["key"] == "contract_template" for s in data["settings"])


def test_restore_replaces_data_but_keeps_admin(tmp_path, store):
    _populate(store)
    snapshot = BackupService(store).export_to(tmp_path / "out")

    target = Store(f"sqlite:///{tmp_path / 'target.db'}")
    target_users = UserService(target)
    target_users.ensure_defaults()
    target_users.save_user(UserUpsert(username="stale", password="x"))
    ClientService(target).create(ClientCreate(name="Old", tazkira="OLD-1"))

    BackupService(target).import_file(snapshot)

    assert [c.name for c in ClientService(target).list()] == ["Ali"]
    assert {u.username for u in target_users.list_users()} == {"admin", "sara"}
    assert target_users.login("admin", "admin") is not None
    assert ContractService(target).count() == 1
    assert TemplateService(target).load() == default_template()


def test_malformed_backup_leaves_store_untouched(tmp_path, store):
    _populate(store)
    service = BackupService(store)
    broken = tmp_path / "broken.json"
    broken.write_text('{"clients": [{"name": "no id"}]}', encoding="utf-8")
    not_json = tmp_path / "text.json"
    not_json.write_text("hello", encoding="utf-8")
    a_list = tmp_path / "list.json"
    a_list.write_text("[]", encoding="utf-8")

    for path in (broken, not_json, a_list):
        with pytest.raises(ValueError):
            service.import_file(path)

    assert [c.name for c in ClientService(store).list()] == ["Ali"]
    assert ContractService(store).count() == 1


def test_restore_of_partial_document_empties_missing_tables(store):
    _populate(store)
    service = BackupService(store)

    service.restore(service.parse('{"version": "1.0.0"}'))

    assert ClientService(store).list() == []
    assert [u.username for u in UserService(store).list_users()] == ["admin"]
