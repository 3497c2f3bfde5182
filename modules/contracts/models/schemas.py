from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContractRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    client_name: str = ""
    form_data: Dict[str, str] = Field(default_factory=dict)
    timestamp: datetime
    expiry_date: Optional[datetime] = None
    template_id: Optional[str] = None
    is_extended: bool = False
    assigned_to: Optional[str] = None

    @property
    def plate(self) -> str:
        return self.form_data.get("tazkira", "")
