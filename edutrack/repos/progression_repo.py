from __future__ import annotations

from typing import Any, Protocol

from edutrack.models.progression import LessonProgression
from edutrack.repos.memory import InMemoryTable


class ProgressionRepo(Protocol):
    def get(self, progression_id: int) -> LessonProgression | None: ...
    def get_by_key(
        self, lesson_id: int, class_id: int, teacher_id: int
    ) -> LessonProgression | None: ...
    def list_all(self) -> list[LessonProgression]: ...
    def list_for_lesson(self, lesson_id: int) -> list[LessonProgression]: ...
    def list_for_class(self, class_id: int) -> list[LessonProgression]: ...
    def list_for_teacher(self, teacher_id: int) -> list[LessonProgression]: ...
    def add(self, **fields: Any) -> LessonProgression: ...
    def update(self, progression_id: int, **changes: Any) -> LessonProgression | None: ...
    def delete_for_teacher(self, teacher_id: int) -> int: ...
    def clear_validator(self, user_id: int) -> int: ...


class InMemoryProgressionRepo:
    def __init__(self) -> None:
        self._table: InMemoryTable[LessonProgression] = InMemoryTable(
            LessonProgression
        )
        # (lesson_id, class_id, teacher_id) -> progression id
        self._by_key: dict[tuple[int, int, int], int] = {}

    def get(self, progression_id: int) -> LessonProgression | None:
        return self._table.get(progression_id)

    def get_by_key(
        self, lesson_id: int, class_id: int, teacher_id: int
    ) -> LessonProgression | None:
        row_id = self._by_key.get((lesson_id, class_id, teacher_id))
        return self._table.get(row_id) if row_id is not None else None

    def list_all(self) -> list[LessonProgression]:
        # Most recently touched first, as every listing shows them.
        return sorted(self._table.all(), key=lambda p: (p.updated_at, p.id), reverse=True)

    def list_for_lesson(self, lesson_id: int) -> list[LessonProgression]:
        return [p for p in self.list_all() if p.lesson_id == lesson_id]

    def list_for_class(self, class_id: int) -> list[LessonProgression]:
        return [p for p in self.list_all() if p.class_id == class_id]

    def list_for_teacher(self, teacher_id: int) -> list[LessonProgression]:
        return [p for p in self.list_all() if p.teacher_id == teacher_id]

    def add(self, **fields: Any) -> LessonProgression:
        key = (fields["lesson_id"], fields["class_id"], fields["teacher_id"])
        if key in self._by_key:
            raise ValueError("progression already exists for this lesson, class and teacher")
        row = self._table.insert(**fields)
        self._by_key[key] = row.id
        return row

    def update(self, progression_id: int, **changes: Any) -> LessonProgression | None:
        # The key columns are immutable once a row exists.
        for column in ("lesson_id", "class_id", "teacher_id"):
            if column in changes:
                raise ValueError(f"{column} cannot change")
        return self._table.update(progression_id, **changes)

    def delete_for_teacher(self, teacher_id: int) -> int:
        doomed = [k for k in self._by_key if k[2] == teacher_id]
        for key in doomed:
            self._table.delete(self._by_key.pop(key))
        return len(doomed)

    def clear_validator(self, user_id: int) -> int:
        touched = self._table.where(lambda p: p.validated_by == user_id)
        for row in touched:
            self._table.update(row.id, validated_by=None, validated_at=None)
        return len(touched)
