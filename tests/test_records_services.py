from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from pydantic import ValidationError

from modules.clients.models.schemas import ClientCreate
from modules.clients.services import ClientInUseError, ClientService, normalize_plate
from modules.contracts.services.contracts import ContractService, add_months
from modules.finance.models.schemas import TransactionCreate, TransactionUpdate
from modules.finance.services import LedgerService
from modules.reports.services import ReportService, resolve_window
from modules.users.permissions import ADMIN_ROLE_ID, EMPLOYEE_ROLE_ID, Access

ADMIN = Access.for_user("admin", ADMIN_ROLE_ID, ())
EMPLOYEE = Access.for_user("sara", EMPLOYEE_ROLE_ID, ("workspace", "archive"))
CLERK = Access.for_user("omid", "clerk", ("workspace", "workspace_create", "archive", "archive_edit"))


def _client(clients: ClientService, name: str = "Ali", plate: str = "KBL-123"):
    return clients.create(ClientCreate(name=name, tazkira=plate, father_name=" Reza ", phone=""))


# -- clients ----------------------------------------------------------------
def test_client_requires_name_and_plate():
    with pytest.raises(ValidationError):
        ClientCreate(name="  ", tazkira="1")
    with pytest.raises(ValidationError):
        ClientCreate(name="Ali", tazkira="")


def test_duplicate_plate_detection_ignores_spaces_dashes_and_case(store):
    clients = ClientService(store)
    created = _client(clients)

    assert created.father_name == "Reza"
    assert normalize_plate(" kbl 12-3 ") == "kbl123"
    assert clients.find_by_plate("kbl 123").id == created.id
    with pytest.raises(ValueError):
        _client(clients, name="Other", plate="kbl 1-23")


def test_client_search_and_update(store):
    clients = ClientService(store)
    ali = _client(clients, "Ali Ahmadi", "KBL-1")
    _client(clients, "Sara", "HRT-9")

    assert [c.name for c in clients.search("ahmad")] == ["Ali Ahmadi"]
    assert [c.name for c in clients.search("hrt")] == ["Sara"]
    assert clients.search("   ") == []

    updated = clients.update(ali.id, ClientCreate(name="Ali A.", tazkira="KBL-1", phone="0700"))
    assert updated.phone == "0700"
    assert clients.get(ali.id).name == "Ali A."


def test_client_with_contracts_or_transactions_cannot_be_deleted(store):
    clients = ClientService(store)
    contracts = ContractService(store)
    ledger = LedgerService(store)
    with_contract = _client(clients, "A", "P1")
    with_money = _client(clients, "B", "P2")
    free = _client(clients, "C", "P3")
    contracts.create(
        client_id=with_contract.id, client_name="A", answers={}, template_id="default", creator=ADMIN, creator_id="u0"
    )
    ledger.add(TransactionCreate(client_id=with_money.id, type="charge", amount=100))

    with pytest.raises(ClientInUseError):
        clients.delete(with_contract.id)
    with pytest.raises(ClientInUseError):
        clients.delete(with_money.id)
    clients.delete(free.id)
    assert clients.get(free.id) is None


# -- contracts --------------------------------------------------------------
def test_add_months_clamps_to_month_end():
    assert add_months(datetime(2024, 8, 31), 6) == datetime(2025, 2, 28)
    assert add_months(datetime(2024, 1, 15), 12) == datetime(2025, 1, 15)


def test_create_sets_expiry_and_assignment(store):
    contracts = ContractService(store)
    now = datetime(2024, 1, 10, 9, 0)

    by_admin = contracts.create(
        client_id="c1", client_name="Ali", answers={"tazkira": "KBL-1"}, template_id="default",
        creator=ADMIN, creator_id="admin-id", months=6, now=now,
    )
    by_clerk = contracts.create(
        client_id="c1", client_name="Ali", answers={}, template_id="default",
        creator=CLERK, creator_id="clerk-id", now=now,
    )

    assert by_admin.assigned_to is None
    assert by_admin.expiry_date == datetime(2024, 7, 10, 9, 0)
    assert by_admin.plate == "KBL-1"
    assert by_clerk.assigned_to == "clerk-id"
    assert by_clerk.expiry_date == datetime(2025, 1, 10, 9, 0)
    with pytest.raises(ValueError):
        contracts.create(
            client_id="c1", client_name="Ali", answers={}, template_id="default",
            creator=ADMIN, creator_id=None, months=3,
        )


def test_list_filters_by_kind_search_and_assignment(store):
    contracts = ContractService(store)
    main = contracts.create(
        client_id="c1", client_name="Ali", answers={"tazkira": "KBL-1"}, template_id="t",
        creator=CLERK, creator_id="u1",
    )
    ext = contracts.create(
        client_id="c2", client_name="Sara", answers={"tazkira": "HRT-2"}, template_id="t",
        creator=ADMIN, creator_id=None, is_extended=True,
    )

    assert {c.id for c in contracts.list()} == {main.id, ext.id}
    assert [c.id for c in contracts.list(kind="main")] == [main.id]
    assert [c.id for c in contracts.list(kind="extended")] == [ext.id]
    assert [c.id for c in contracts.list(search="hrt")] == [ext.id]
    assert [c.id for c in contracts.list(access=EMPLOYEE, user_id="u1")] == [main.id]
    assert contracts.list(access=EMPLOYEE, user_id="u2") == []

    contracts.assign(ext.id, "u2")
    assert [c.id for c in contracts.list(access=EMPLOYEE, user_id="u2")] == [ext.id]


def test_submit_checks_permissions_and_reports(store, notes):
    contracts = ContractService(store, notes.append)

    assert contracts.submit(
        client_id="c1", client_name="Ali", answers={}, template_id="t", creator=EMPLOYEE, creator_id="u1"
    ) is False
    assert notes[-1].severity == "warning"
    assert contracts.count() == 0

    assert contracts.submit(
        client_id="c1", client_name="Ali", answers={"a": "1"}, template_id="t", creator=CLERK, creator_id="u1"
    )
    saved = contracts.list()[0]

    # strict employees may edit their assigned contracts
    assert contracts.submit(
        client_id="c1", client_name="Ali", answers={"a": "2"}, template_id="t",
        creator=EMPLOYEE, creator_id="u1", editing_id=saved.id,
    )
    assert contracts.get(saved.id).form_data == {"a": "2"}

    assert contracts.submit(
        client_id="c1", client_name="Ali", answers={"a": "3"}, template_id="t",
        creator=CLERK, creator_id="u1", editing_id=saved.id, is_extension=True,
    )
    assert contracts.count() == 2
    assert contracts.count_for_client("c1") == 2
    assert [c.is_extended for c in contracts.list(kind="extended")] == [True]


def test_expired_contracts(store):
    contracts = ContractService(store)
    old = contracts.create(
        client_id="c1", client_name="Ali", answers={}, template_id="t", creator=ADMIN, creator_id=None,
        months=6, now=datetime.now() - timedelta(days=400),
    )
    contracts.create(client_id="c1", client_name="Ali", answers={}, template_id="t", creator=ADMIN, creator_id=None)

    assert [c.id for c in contracts.expired()] == [old.id]
    contracts.delete(old.id)
    assert contracts.expired() == []


# -- finance ----------------------------------------------------------------
def test_ledger_totals_and_edits(store, notes):
    ledger = LedgerService(store, notes.append)
    ledger.add(TransactionCreate(client_id="c1", type="charge", amount=5000, description="device"))
    payment = ledger.add(TransactionCreate(client_id="c1", type="payment", amount=2000))
    ledger.add(TransactionCreate(client_id="c2", type="charge", amount=999))

    totals = ledger.totals("c1")
    assert (totals.charges, totals.payments, totals.balance) == (5000, 2000, 3000)

    assert ledger.record(TransactionUpdate(type="payment", amount=3500), payment.id)
    assert ledger.totals("c1").balance == 1500
    ledger.delete(payment.id)
    assert [t.amount for t in ledger.list_for_client("c1")] == [5000]
    assert ledger.record(TransactionUpdate(type="charge", amount=1), "missing") is False
    assert notes[-1].severity == "error"


def test_transaction_amount_must_be_positive():
    with pytest.raises(ValidationError):
        TransactionCreate(client_id="c1", type="charge", amount=0)
    with pytest.raises(ValidationError):
        TransactionCreate(client_id="c1", type="refund", amount=10)


# -- reports ----------------------------------------------------------------
def test_resolve_window_custom_range_is_inclusive():
    lower, upper = resolve_window("custom", start=date(2024, 1, 1), end=date(2024, 1, 31))
    assert lower == datetime(2024, 1, 1)
    assert upper.date() == date(2024, 1, 31) and upper.hour == 23
    assert resolve_window("today", now=datetime(2024, 5, 5, 15, 0)) == (datetime(2024, 5, 5), None)
    with pytest.raises(ValueError):
        resolve_window("decade")


def test_contracts_report_counts(store):
    contracts = ContractService(store)
    now = datetime(2024, 6, 15, 12, 0)
    for days, extended in ((0, False), (2, True), (20, False), (200, False)):
        contracts.create(
            client_id="c", client_name="N", answers={}, template_id="t", creator=ADMIN, creator_id=None,
            is_extended=extended, now=now - timedelta(days=days),
        )
    reports = ReportService(store)

    week = reports.contracts_report("week", now=now)
    assert (week.total, week.main_count, week.ext_count) == (2, 1, 1)
    assert reports.contracts_report("month", now=now).total == 3
    assert reports.contracts_report("year", kind="main", now=now).total == 3
    custom = reports.contracts_report("custom", start=date(2024, 6, 13), end=date(2024, 6, 13), now=now)
    assert custom.total == 1
