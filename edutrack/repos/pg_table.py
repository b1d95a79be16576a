"""Row storage shared by the SQL-backed repos.

SqlTable is the SQLAlchemy counterpart of memory.InMemoryTable: it maps one
table row class to one frozen domain dataclass and hands out dataclasses
only, never live ORM rows.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import fields
from datetime import UTC, datetime
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, delete, func, select, update

from edutrack.db.engine import Base
from edutrack.db.session import SqlSessions

T = TypeVar("T")


def to_columns(values: dict[str, Any]) -> dict[str, Any]:
    """Dataclass values as column values: sets and tuples are stored as lists."""
    columns: dict[str, Any] = {}
    for name, value in values.items():
        if isinstance(value, frozenset):
            value = sorted(value)
        elif isinstance(value, tuple):
            value = list(value)
        columns[name] = value
    return columns


def to_model(model: type[T], row: Base, **overrides: Any) -> T:
    values: dict[str, Any] = {}
    for f in fields(model):  # type: ignore[arg-type]
        value = overrides[f.name] if f.name in overrides else getattr(row, f.name)
        # Every stored timestamp is UTC; SQLite hands them back naive.
        if isinstance(value, datetime) and value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        values[f.name] = value
    return model(**values)


class SqlTable(Generic[T]):
    def __init__(
        self,
        sessions: SqlSessions,
        row_type: type[Base],
        model: type[T],
        convert: Callable[[Any], dict[str, Any]] | None = None,
    ) -> None:
        self._sessions = sessions
        self._row_type = row_type
        self._model = model
        self._convert = convert

    def _to_model(self, row: Base) -> T:
        overrides = self._convert(row) if self._convert else {}
        return to_model(self._model, row, **overrides)

    def insert(self, **values: Any) -> T:
        with self._sessions.use() as session:
            row = self._row_type(**to_columns(values))
            session.add(row)
            session.flush()
            return self._to_model(row)

    def get(self, row_id: int) -> T | None:
        with self._sessions.use() as session:
            row = session.get(self._row_type, row_id)
            return self._to_model(row) if row is not None else None

    def update(self, row_id: int, **changes: Any) -> T | None:
        with self._sessions.use() as session:
            row = session.get(self._row_type, row_id)
            if row is None:
                return None
            for name, value in to_columns(changes).items():
                setattr(row, name, value)
            session.flush()
            return self._to_model(row)

    def update_where(self, *criteria: ColumnElement[bool], **changes: Any) -> int:
        with self._sessions.use() as session:
            stmt = update(self._row_type).where(*criteria).values(**to_columns(changes))
            return session.execute(stmt).rowcount

    def delete(self, row_id: int) -> bool:
        with self._sessions.use() as session:
            row = session.get(self._row_type, row_id)
            if row is None:
                return False
            session.delete(row)
            session.flush()
            return True

    def delete_where(self, *criteria: ColumnElement[bool]) -> int:
        with self._sessions.use() as session:
            return session.execute(delete(self._row_type).where(*criteria)).rowcount

    def select(
        self,
        *criteria: ColumnElement[bool],
        order_by: Iterable[Any] = (),
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[T]:
        stmt = select(self._row_type).where(*criteria).order_by(*order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._sessions.use() as session:
            return [self._to_model(row) for row in session.scalars(stmt)]

    def first(self, *criteria: ColumnElement[bool]) -> T | None:
        rows = self.select(*criteria, limit=1)
        return rows[0] if rows else None

    def count(self, *criteria: ColumnElement[bool]) -> int:
        stmt = select(func.count()).select_from(self._row_type).where(*criteria)
        with self._sessions.use() as session:
            return session.scalar(stmt) or 0
