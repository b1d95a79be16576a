from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from edutrack.models.user import User
from edutrack.repos.memory import InMemoryTable


class UserRepo(Protocol):
    def get_by_id(self, user_id: int) -> User | None: ...
    def get_by_username(self, username: str) -> User | None: ...
    def list_all(self) -> list[User]: ...
    def list_by_role(self, role: str) -> list[User]: ...
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
    ) -> User: ...
    def update(self, user_id: int, **changes: Any) -> User | None: ...
    def update_password_hash(self, user_id: int, password_hash: str) -> None: ...
    def delete(self, user_id: int) -> bool: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._table: InMemoryTable[User] = InMemoryTable(User)

    def get_by_id(self, user_id: int) -> User | None:
        return self._table.get(user_id)

    def get_by_username(self, username: str) -> User | None:
        return self._table.find(lambda u: u.username == username)

    def list_all(self) -> list[User]:
        return sorted(self._table.all(), key=lambda u: u.id)

    def list_by_role(self, role: str) -> list[User]:
        return [u for u in self.list_all() if u.role == role]

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
        # Same uniqueness the users table enforces on username and email.
        if self.get_by_username(username) is not None:
            raise ValueError("username already exists")
        if email and self._table.find(lambda u: u.email == email) is not None:
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
            clash = self._table.find(lambda u: u.email == email)
            if clash is not None and clash.id != user_id:
                raise ValueError("email already exists")
        return self._table.update(user_id, **changes)

    def update_password_hash(self, user_id: int, password_hash: str) -> None:
        if self._table.update(user_id, password_hash=password_hash) is None:
            raise KeyError("user not found")

    def delete(self, user_id: int) -> bool:
        return self._table.delete(user_id)
