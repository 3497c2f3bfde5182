from __future__ import annotations

import logging
from typing import List

from sqlalchemy import select

from modules._infra.ids import time_id
from modules._infra.repository import Store, StoreError
from notifications.models import Notification, Notify, discard

from .models import Transaction
from .models.schemas import LedgerTotals, TransactionCreate, TransactionRead, TransactionUpdate

logger = logging.getLogger(__name__)


class LedgerService:
    """Per-client charges and payments."""

    def __init__(self, store: Store, notify: Notify = discard) -> None:
        self.store = store
        self._notify = notify

    def list_for_client(self, client_id: str) -> List[TransactionRead]:
        with self.store.session() as session:
            rows = session.execute(
                select(Transaction)
                .where(Transaction.client_id == client_id)
                .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            ).scalars().all()
            return [TransactionRead.model_validate(r) for r in rows]

    def add(self, data: TransactionCreate) -> TransactionRead:
        row = Transaction(id=time_id(), **data.model_dump())
        with self.store.session() as session:
            session.add(row)
            session.flush()
            return TransactionRead.model_validate(row)

    def edit(self, transaction_id: str, data: TransactionUpdate) -> TransactionRead:
        with self.store.session() as session:
            row = session.get(Transaction, transaction_id)
            if row is None:
                raise ValueError(f"unknown transaction {transaction_id}")
            for key, value in data.model_dump().items():
                setattr(row, key, value)
            session.flush()
            return TransactionRead.model_validate(row)

    def delete(self, transaction_id: str) -> None:
        with self.store.session() as session:
            row = session.get(Transaction, transaction_id)
            if row is not None:
                session.delete(row)

    def totals(self, client_id: str) -> LedgerTotals:
        totals = LedgerTotals()
        for entry in self.list_for_client(client_id):
            if entry.type == "charge":
                totals.charges += entry.amount
            else:
                totals.payments += entry.amount
        return totals

    def record(self, data: TransactionCreate | TransactionUpdate, transaction_id: str | None = None) -> bool:
        """Add or edit an entry from the ledger form; outcome as a notification."""

        try:
            if transaction_id is None:
                if not isinstance(data, TransactionCreate):
                    raise ValueError("new entries need a client")
                self.add(data)
                message = "تراکنش ثبت شد"
            else:
                self.edit(transaction_id, TransactionUpdate(type=data.type, amount=data.amount, description=data.description))
                message = "تراکنش ویرایش شد"
        except (StoreError, ValueError) as exc:
            logger.warning("[finance] ledger write failed: %s", exc)
            self._notify(Notification("امور مالی", "ثبت تراکنش ناموفق بود", severity="error", source="finance"))
            return False
        self._notify(Notification("امور مالی", message, severity="success", source="finance"))
        return True


__all__ = ["LedgerService"]
