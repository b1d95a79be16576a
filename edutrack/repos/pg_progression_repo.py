"""PostgreSQL implementation of ProgressionRepo."""

from __future__ import annotations

from typing import Any

from edutrack.db.session import SqlSessions
from edutrack.db.tables import LessonProgressionRow
from edutrack.models.progression import LessonProgression
from edutrack.repos.pg_table import SqlTable

_NEWEST_FIRST = [LessonProgressionRow.updated_at.desc(), LessonProgressionRow.id.desc()]


def _elements(row: LessonProgressionRow) -> dict[str, Any]:
    return {"chapter_element_ids": frozenset(row.chapter_element_ids or ())}


class PgProgressionRepo:
    def __init__(self, sessions: SqlSessions) -> None:
        self._table: SqlTable[LessonProgression] = SqlTable(
            sessions, LessonProgressionRow, LessonProgression, _elements
        )

    def get(self, progression_id: int) -> LessonProgression | None:
        return self._table.get(progression_id)

    def get_by_key(
        self, lesson_id: int, class_id: int, teacher_id: int
    ) -> LessonProgression | None:
        return self._table.first(
            LessonProgressionRow.lesson_id == lesson_id,
            LessonProgressionRow.class_id == class_id,
            LessonProgressionRow.teacher_id == teacher_id,
        )

    def list_all(self) -> list[LessonProgression]:
        return self._table.select(order_by=_NEWEST_FIRST)

    def list_for_lesson(self, lesson_id: int) -> list[LessonProgression]:
        return self._table.select(
            LessonProgressionRow.lesson_id == lesson_id, order_by=_NEWEST_FIRST
        )

    def list_for_class(self, class_id: int) -> list[LessonProgression]:
        return self._table.select(
            LessonProgressionRow.class_id == class_id, order_by=_NEWEST_FIRST
        )

    def list_for_teacher(self, teacher_id: int) -> list[LessonProgression]:
        return self._table.select(
            LessonProgressionRow.teacher_id == teacher_id, order_by=_NEWEST_FIRST
        )

    def add(self, **fields: Any) -> LessonProgression:
        if self.get_by_key(fields["lesson_id"], fields["class_id"], fields["teacher_id"]):
            raise ValueError("progression already exists for this lesson, class and teacher")
        return self._table.insert(**fields)

    def update(self, progression_id: int, **changes: Any) -> LessonProgression | None:
        for column in ("lesson_id", "class_id", "teacher_id"):
            if column in changes:
                raise ValueError(f"{column} cannot change")
        return self._table.update(progression_id, **changes)

    def delete_for_teacher(self, teacher_id: int) -> int:
        return self._table.delete_where(LessonProgressionRow.teacher_id == teacher_id)

    def clear_validator(self, user_id: int) -> int:
        return self._table.update_where(
            LessonProgressionRow.validated_by == user_id,
            validated_by=None,
            validated_at=None,
        )
