from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select

from modules._infra.ids import time_id
from modules._infra.repository import Store
from modules.users.models import Role, User
from modules.users.models.schemas import RoleRead, UserRead, UserUpsert
from modules.users.permissions import (
    ADMIN_ROLE_ID,
    ADMIN_USERNAME,
    ALL_PERMISSION_IDS,
    EMPLOYEE_PERMS,
    EMPLOYEE_ROLE_ID,
    SYSTEM_ROLE_IDS,
    Access,
)

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_PASSWORD = "admin"


class UserService:
    def __init__(self, store: Store) -> None:
        self.store = store

    def ensure_defaults(self) -> None:
        """Create the system roles and the admin account on an empty store."""

        with self.store.session() as session:
            if session.get(Role, ADMIN_ROLE_ID) is None:
                session.add(Role(id=ADMIN_ROLE_ID, name="مدیر سیستم", perms=list(ALL_PERMISSION_IDS)))
            if session.get(Role, EMPLOYEE_ROLE_ID) is None:
                session.add(Role(id=EMPLOYEE_ROLE_ID, name="کارمند", perms=list(EMPLOYEE_PERMS)))
            admin = session.execute(select(User).where(User.username == ADMIN_USERNAME)).scalar_one_or_none()
            if admin is None:
                session.add(
                    User(id=time_id(), username=ADMIN_USERNAME, password=DEFAULT_ADMIN_PASSWORD, role_id=ADMIN_ROLE_ID)
                )
                logger.info("[users] created default admin account")

    # -- authentication ---------------------------------------------------
    def login(self, username: str, password: str) -> Optional[UserRead]:
        with self.store.session() as session:
            row = session.execute(
                select(User).where(User.username == username, User.password == password)
            ).scalar_one_or_none()
            return UserRead.model_validate(row) if row is not None else None

    def access_for(self, user: UserRead) -> Access:
        role = self.get_role(user.role_id) if user.role_id else None
        return Access.for_user(user.username, user.role_id, role.perms if role else ())

    # -- users ------------------------------------------------------------
    def list_users(self) -> List[UserRead]:
        with self.store.session() as session:
            rows = session.execute(select(User).order_by(User.username)).scalars().all()
            return [UserRead.model_validate(r) for r in rows]

    def get_user(self, user_id: str) -> Optional[UserRead]:
        with self.store.session() as session:
            row = session.get(User, user_id)
            return UserRead.model_validate(row) if row is not None else None

    def save_user(self, data: UserUpsert, user_id: Optional[str] = None) -> UserRead:
        """Create a user, or update ``user_id``.

        Raises ``ValueError`` when the admin account would be renamed or the
        username is already taken.
        """

        with self.store.session() as session:
            clash = session.execute(select(User).where(User.username == data.username)).scalar_one_or_none()
            if user_id is None:
                if clash is not None:
                    raise ValueError(f"username {data.username!r} already exists")
                row = User(id=time_id(), **data.model_dump())
                session.add(row)
            else:
                row = session.get(User, user_id)
                if row is None:
                    raise ValueError(f"unknown user {user_id}")
                if row.username == ADMIN_USERNAME and data.username != ADMIN_USERNAME:
                    raise ValueError("the admin username cannot be changed")
                if clash is not None and clash.id != user_id:
                    raise ValueError(f"username {data.username!r} already exists")
                row.username = data.username
                row.password = data.password
                row.role_id = data.role_id
            session.flush()
            return UserRead.model_validate(row)

    def delete_user(self, user_id: str) -> None:
        with self.store.session() as session:
            row = session.get(User, user_id)
            if row is None:
                return
            if row.username == ADMIN_USERNAME:
                raise ValueError("the admin account cannot be deleted")
            session.delete(row)

    # -- roles ------------------------------------------------------------
    def list_roles(self) -> List[RoleRead]:
        with self.store.session() as session:
            rows = session.execute(select(Role).order_by(Role.name)).scalars().all()
            return [RoleRead.model_validate(r) for r in rows]

    def get_role(self, role_id: str) -> Optional[RoleRead]:
        with self.store.session() as session:
            row = session.get(Role, role_id)
            return RoleRead.model_validate(row) if row is not None else None

    def create_role(self, name: str, perms: Iterable[str]) -> RoleRead:
        name = (name or "").strip()
        if not name:
            raise ValueError("role name is required")
        perms = list(perms)
        unknown = [p for p in perms if p not in ALL_PERMISSION_IDS]
        if unknown:
            raise ValueError(f"unknown permissions: {', '.join(unknown)}")
        with self.store.session() as session:
            row = Role(id=time_id(), name=name, perms=list(dict.fromkeys(perms)))
            session.add(row)
            session.flush()
            return RoleRead.model_validate(row)

    def delete_role(self, role_id: str) -> None:
        if role_id in SYSTEM_ROLE_IDS:
            raise ValueError("system roles cannot be deleted")
        with self.store.session() as session:
            row = session.get(Role, role_id)
            if row is not None:
                session.delete(row)


__all__ = ["DEFAULT_ADMIN_PASSWORD", "UserService"]
