from __future__ import annotations

import logging
import re
from typing import List, Optional

from sqlalchemy import func, select

from modules._infra.ids import time_id
from modules._infra.repository import Store
from modules.clients.models import Client
from modules.clients.models.schemas import ClientCreate, ClientRead
from modules.contracts.models.records import ContractRecord
from modules.finance.models import Transaction

logger = logging.getLogger(__name__)

_PLATE_NOISE = re.compile(r"[\s\-]+")


class ClientInUseError(ValueError):
    """Raised when deleting a client that still has contracts or ledger entries."""


def normalize_plate(value: str) -> str:
    return _PLATE_NOISE.sub("", value or "").lower()


class ClientService:
    def __init__(self, store: Store) -> None:
        self.store = store

    def list(self) -> List[ClientRead]:
        with self.store.session() as session:
            rows = session.execute(select(Client).order_by(Client.created_at.desc())).scalars().all()
            return [ClientRead.model_validate(r) for r in rows]

    def get(self, client_id: str) -> Optional[ClientRead]:
        with self.store.session() as session:
            row = session.get(Client, client_id)
            return ClientRead.model_validate(row) if row is not None else None

    def search(self, term: str) -> List[ClientRead]:
        """Case-insensitive substring match on name or plate; blank matches nothing."""

        needle = (term or "").strip().lower()
        if not needle:
            return []
        return [c for c in self.list() if needle in c.name.lower() or needle in (c.tazkira or "").lower()]

    def find_by_plate(self, plate: str) -> Optional[ClientRead]:
        wanted = normalize_plate(plate)
        if not wanted:
            return None
        for client in self.list():
            if normalize_plate(client.tazkira) == wanted:
                return client
        return None

    def create(self, data: ClientCreate) -> ClientRead:
        if self.find_by_plate(data.tazkira) is not None:
            raise ValueError(f"plate {data.tazkira!r} is already registered")
        row = Client(id=time_id(), **data.model_dump())
        with self.store.session() as session:
            session.add(row)
            session.flush()
            return ClientRead.model_validate(row)

    def update(self, client_id: str, data: ClientCreate) -> ClientRead:
        with self.store.session() as session:
            row = session.get(Client, client_id)
            if row is None:
                raise ValueError(f"unknown client {client_id}")
            for key, value in data.model_dump().items():
                setattr(row, key, value)
            session.flush()
            return ClientRead.model_validate(row)

    def delete(self, client_id: str) -> None:
        with self.store.session() as session:
            contracts = session.execute(
                select(func.count()).select_from(ContractRecord).where(ContractRecord.client_id == client_id)
            ).scalar_one()
            if contracts:
                raise ClientInUseError("client has stored contracts")
            transactions = session.execute(
                select(func.count()).select_from(Transaction).where(Transaction.client_id == client_id)
            ).scalar_one()
            if transactions:
                raise ClientInUseError("client has ledger entries")
            row = session.get(Client, client_id)
            if row is not None:
                session.delete(row)
                logger.info("[clients] deleted %s", client_id)


__all__ = ["ClientInUseError", "ClientService", "normalize_plate"]
