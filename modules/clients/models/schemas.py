from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator


class ClientCreate(BaseModel):
    name: str
    father_name: str = ""
    tazkira: str
    phone: str = ""

    @field_validator("name", "tazkira")
    @classmethod
    def _required(cls, value: str) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("father_name", "phone")
    @classmethod
    def _strip(cls, value: str) -> str:
        return (value or "").strip()


class ClientRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    father_name: str = ""
    tazkira: str
    phone: str = ""
    created_at: datetime
