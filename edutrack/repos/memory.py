"""Row storage shared by the in-memory repos.

Each table owns an integer id sequence and a dict of frozen dataclass rows.
Updates go through dataclasses.replace so a row handed out earlier is never
mutated under its holder.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import replace
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class InMemoryTable(Generic[T]):
    def __init__(self, row_type: type[T]) -> None:
        self._row_type = row_type
        self._rows: dict[int, T] = {}
        self._next_id = 1

    def insert(self, **fields: Any) -> T:
        row = self._row_type(id=self._next_id, **fields)
        self._rows[self._next_id] = row
        self._next_id += 1
        return row

    def get(self, row_id: int) -> T | None:
        return self._rows.get(row_id)

    def update(self, row_id: int, **changes: Any) -> T | None:
        row = self._rows.get(row_id)
        if row is None:
            return None
        updated = replace(row, **changes)  # type: ignore[type-var]
        self._rows[row_id] = updated
        return updated

    def delete(self, row_id: int) -> bool:
        return self._rows.pop(row_id, None) is not None

    def delete_where(self, predicate: Callable[[T], bool]) -> int:
        doomed = [k for k, row in self._rows.items() if predicate(row)]
        for k in doomed:
            del self._rows[k]
        return len(doomed)

    def find(self, predicate: Callable[[T], bool]) -> T | None:
        return next((row for row in self._rows.values() if predicate(row)), None)

    def where(self, predicate: Callable[[T], bool]) -> list[T]:
        return [row for row in self._rows.values() if predicate(row)]

    def all(self) -> list[T]:
        return list(self._rows.values())

    def clear(self) -> None:
        self._rows.clear()
        self._next_id = 1

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._rows.values()))

    def __len__(self) -> int:
        return len(self._rows)
