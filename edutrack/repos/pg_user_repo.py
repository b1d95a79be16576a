"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from edutrack.db.session import SqlSessions
from edutrack.db.tables import UserRow
from edutrack.models.user import User
from edutrack.repos.pg_table import SqlTable


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, sessions: SqlSessions) -> None:
        self._table: SqlTable[User] = SqlTable(sessions, UserRow, User)

    def get_by_id(self, user_id: int) -> User | None:
        return self._table.get(user_id)

    def get_by_username(self, username: str) -> User | None:
        return self._table.first(UserRow.username == username)

    def list_all(self) -> list[User]:
        return self._table.select(order_by=[UserRow.id])

    def list_by_role(self, role: str) -> list[User]:
        return self._table.select(UserRow.role == role, order_by=[UserRow.id])

    def add(
        self,
        *,
        username: str,
        password_hash: str,
        role: str,
        first_name: str,
        last_name: str,
        created_at: datetime,
        email: str | None = None,
        hourly_rate: float = 0.0,
    ) -> User:
        # Checked before the insert so a clash never poisons the open session.
        if self.get_by_username(username) is not None:
            raise ValueError("username already exists")
        if email and self._table.first(UserRow.email == email) is not None:
            raise ValueError("email already exists")
        return self._table.insert(
            username=username,
            password_hash=password_hash,
            role=role,
            first_name=first_name,
            last_name=last_name,
            created_at=created_at,
            email=email,
            hourly_rate=hourly_rate,
        )

    def update(self, user_id: int, **changes: Any) -> User | None:
        username = changes.get("username")
        if username is not None:
            clash = self.get_by_username(username)
            if clash is not None and clash.id != user_id:
                raise ValueError("username already exists")
        email = changes.get("email")
        if email:
            clash = self._table.first(UserRow.email == email)
            if clash is not None and clash.id != user_id:
                raise ValueError("email already exists")
        return self._table.update(user_id, **changes)

    def update_password_hash(self, user_id: int, password_hash: str) -> None:
        if self._table.update(user_id, password_hash=password_hash) is None:
            raise KeyError("user not found")

    def delete(self, user_id: int) -> bool:
        return self._table.delete(user_id)
