"""Contract statistics over a date window."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Literal, Optional, Tuple

from sqlalchemy import select

from modules._infra.repository import Store
from modules.contracts.models.records import ContractRecord
from modules.contracts.models.schemas import ContractRead
from modules.contracts.services.contracts import ContractFilter, add_months

QuickRange = Literal["today", "week", "month", "year", "custom"]


@dataclass
class ContractReport:
    contracts: List[ContractRead] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.contracts)

    @property
    def main_count(self) -> int:
        return sum(1 for c in self.contracts if not c.is_extended)

    @property
    def ext_count(self) -> int:
        return sum(1 for c in self.contracts if c.is_extended)


def resolve_window(
    quick: QuickRange,
    *,
    start: Optional[date] = None,
    end: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Lower and upper timestamp bounds for a quick range.

    Custom ranges are inclusive of the whole ``end`` day; either bound may
    be open.
    """

    now = now or datetime.now()
    if quick == "today":
        return datetime.combine(now.date(), time.min), None
    if quick == "week":
        return now - timedelta(days=7), None
    if quick == "month":
        return add_months(now, -1), None
    if quick == "year":
        return add_months(now, -12), None
    if quick == "custom":
        lower = datetime.combine(start, time.min) if start else None
        upper = datetime.combine(end, time.max) if end else None
        return lower, upper
    raise ValueError(f"unknown range {quick!r}")


class ReportService:
    def __init__(self, store: Store) -> None:
        self.store = store

    def contracts_report(
        self,
        quick: QuickRange = "month",
        *,
        kind: ContractFilter = "all",
        start: Optional[date] = None,
        end: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> ContractReport:
        lower, upper = resolve_window(quick, start=start, end=end, now=now)
        stmt = select(ContractRecord).order_by(ContractRecord.timestamp.desc())
        if lower is not None:
            stmt = stmt.where(ContractRecord.timestamp >= lower)
        if upper is not None:
            stmt = stmt.where(ContractRecord.timestamp <= upper)
        if kind == "main":
            stmt = stmt.where(ContractRecord.is_extended.is_(False))
        elif kind == "extended":
            stmt = stmt.where(ContractRecord.is_extended.is_(True))
        with self.store.session() as session:
            rows = session.execute(stmt).scalars().all()
            return ContractReport([ContractRead.model_validate(r) for r in rows])


__all__ = ["ContractReport", "QuickRange", "ReportService", "resolve_window"]
