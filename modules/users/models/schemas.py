from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    password: str
    role_id: Optional[str] = None


class UserUpsert(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    role_id: Optional[str] = None


class RoleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    perms: List[str] = Field(default_factory=list)
