"""Contract archive: storing filled answer maps against clients."""

from __future__ import annotations

import calendar
import logging
from datetime import datetime
from typing import Dict, List, Literal, Optional

from sqlalchemy import func, or_, select

from modules._infra.ids import time_id
from modules._infra.repository import Store, StoreError
from modules.contracts.models.records import ContractRecord
from modules.contracts.models.schemas import ContractRead
from modules.users.permissions import Access
from notifications.models import Notification, Notify, discard

logger = logging.getLogger(__name__)

ContractFilter = Literal["all", "main", "extended"]
EXPIRY_CHOICES = (6, 12)
DEFAULT_EXPIRY_MONTHS = 12


def add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class ContractService:
    def __init__(self, store: Store, notify: Notify = discard) -> None:
        self.store = store
        self._notify = notify

    # -- queries ----------------------------------------------------------
    def count(self) -> int:
        with self.store.session() as session:
            return session.execute(select(func.count()).select_from(ContractRecord)).scalar_one()

    def count_for_client(self, client_id: str) -> int:
        with self.store.session() as session:
            return session.execute(
                select(func.count()).select_from(ContractRecord).where(ContractRecord.client_id == client_id)
            ).scalar_one()

    def get(self, contract_id: str) -> Optional[ContractRead]:
        with self.store.session() as session:
            row = session.get(ContractRecord, contract_id)
            return ContractRead.model_validate(row) if row is not None else None

    def list(
        self,
        *,
        kind: ContractFilter = "all",
        search: str = "",
        access: Optional[Access] = None,
        user_id: Optional[str] = None,
    ) -> List[ContractRead]:
        """Contracts newest first, filtered by type, search text and assignment.

        Strict employees only ever see contracts assigned to ``user_id``.
        """

        stmt = select(ContractRecord).order_by(ContractRecord.timestamp.desc())
        if kind == "main":
            stmt = stmt.where(ContractRecord.is_extended.is_(False))
        elif kind == "extended":
            stmt = stmt.where(ContractRecord.is_extended.is_(True))
        if access is not None and access.is_strict_employee:
            stmt = stmt.where(ContractRecord.assigned_to == user_id)
        with self.store.session() as session:
            rows = [ContractRead.model_validate(r) for r in session.execute(stmt).scalars().all()]
        term = search.strip().lower()
        if term:
            rows = [c for c in rows if term in c.client_name.lower() or term in c.plate.lower()]
        return rows

    def expired(self, now: Optional[datetime] = None) -> List[ContractRead]:
        now = now or datetime.now()
        with self.store.session() as session:
            rows = session.execute(
                select(ContractRecord)
                .where(ContractRecord.expiry_date.is_not(None), ContractRecord.expiry_date < now)
                .order_by(ContractRecord.expiry_date)
            ).scalars().all()
            return [ContractRead.model_validate(r) for r in rows]

    # -- writes -----------------------------------------------------------
    def create(
        self,
        *,
        client_id: str,
        client_name: str,
        answers: Dict[str, str],
        template_id: str,
        creator: Access,
        creator_id: Optional[str],
        months: int = DEFAULT_EXPIRY_MONTHS,
        is_extended: bool = False,
        now: Optional[datetime] = None,
    ) -> ContractRead:
        if months not in EXPIRY_CHOICES:
            raise ValueError(f"expiry must be one of {EXPIRY_CHOICES} months")
        now = now or datetime.now()
        row = ContractRecord(
            id=time_id(),
            client_id=client_id,
            client_name=client_name,
            form_data=dict(answers),
            timestamp=now,
            expiry_date=add_months(now, months),
            template_id=template_id,
            is_extended=is_extended,
            assigned_to=None if creator.is_admin else creator_id,
        )
        with self.store.session() as session:
            session.add(row)
        return ContractRead.model_validate(row)

    def update(
        self,
        contract_id: str,
        answers: Dict[str, str],
        *,
        months: int = DEFAULT_EXPIRY_MONTHS,
        now: Optional[datetime] = None,
    ) -> ContractRead:
        if months not in EXPIRY_CHOICES:
            raise ValueError(f"expiry must be one of {EXPIRY_CHOICES} months")
        now = now or datetime.now()
        with self.store.session() as session:
            row = session.get(ContractRecord, contract_id)
            if row is None:
                raise ValueError(f"unknown contract {contract_id}")
            row.form_data = dict(answers)
            row.timestamp = now
            row.expiry_date = add_months(now, months)
            session.flush()
            return ContractRead.model_validate(row)

    def delete(self, contract_id: str) -> None:
        with self.store.session() as session:
            row = session.get(ContractRecord, contract_id)
            if row is not None:
                session.delete(row)

    def assign(self, contract_id: str, user_id: Optional[str]) -> None:
        with self.store.session() as session:
            row = session.get(ContractRecord, contract_id)
            if row is None:
                raise ValueError(f"unknown contract {contract_id}")
            row.assigned_to = user_id or None

    # -- workspace entry point -------------------------------------------
    def submit(
        self,
        *,
        client_id: str,
        client_name: str,
        answers: Dict[str, str],
        template_id: str,
        creator: Access,
        creator_id: Optional[str],
        editing_id: Optional[str] = None,
        months: int = DEFAULT_EXPIRY_MONTHS,
        is_extension: bool = False,
    ) -> bool:
        """Save from the workspace; outcome reported as a notification."""

        if editing_id and not is_extension and not creator.can_edit_contracts:
            self._notify(Notification("قرارداد", "دسترسی ویرایش قرارداد را ندارید", severity="warning", source="contracts"))
            return False
        if not editing_id and not creator.can_create:
            self._notify(Notification("قرارداد", "شما دسترسی ایجاد قرارداد ندارید", severity="warning", source="contracts"))
            return False
        try:
            if editing_id and not is_extension:
                self.update(editing_id, answers, months=months)
                message = "تغییرات قرارداد بروزرسانی شد"
            else:
                self.create(
                    client_id=client_id,
                    client_name=client_name,
                    answers=answers,
                    template_id=template_id,
                    creator=creator,
                    creator_id=creator_id,
                    months=months,
                    is_extended=is_extension,
                )
                message = (
                    "قرارداد تمدید و به عنوان سند جدید ثبت شد"
                    if is_extension
                    else "قرارداد با موفقیت در بایگانی ثبت شد"
                )
        except (StoreError, ValueError) as exc:
            logger.warning("[contracts] save failed: %s", exc)
            self._notify(Notification("قرارداد", "ثبت قرارداد ناموفق بود", severity="error", source="contracts"))
            return False
        self._notify(Notification("قرارداد", message, severity="success", source="contracts"))
        return True


__all__ = ["ContractService", "EXPIRY_CHOICES", "add_months"]
