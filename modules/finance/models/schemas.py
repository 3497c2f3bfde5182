from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TransactionType = Literal["charge", "payment"]


class TransactionCreate(BaseModel):
    client_id: str = Field(min_length=1)
    type: TransactionType
    amount: int = Field(gt=0)
    description: str = ""


class TransactionUpdate(BaseModel):
    type: TransactionType
    amount: int = Field(gt=0)
    description: str = ""


class TransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    type: TransactionType
    amount: int
    description: str = ""
    created_at: datetime


class LedgerTotals(BaseModel):
    charges: int = 0
    payments: int = 0

    @property
    def balance(self) -> int:
        return self.charges - self.payments
