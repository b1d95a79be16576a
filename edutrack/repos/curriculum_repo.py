from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

from edutrack.models.curriculum import (
    AcademicYear,
    Chapter,
    ChapterElement,
    Lesson,
    Level,
    SchoolClass,
    Subject,
)
from edutrack.repos.memory import InMemoryTable


class CurriculumRepo(Protocol):
    def get_year(self, year_id: int) -> AcademicYear | None: ...
    def get_year_by_name(self, name: str) -> AcademicYear | None: ...
    def list_years(self) -> list[AcademicYear]: ...
    def active_year(self) -> AcademicYear | None: ...
    def add_year(self, **fields: Any) -> AcademicYear: ...
    def update_year(self, year_id: int, **changes: Any) -> AcademicYear | None: ...

    def get_subject(self, subject_id: int) -> Subject | None: ...
    def list_subjects(self) -> list[Subject]: ...
    def add_subject(self, **fields: Any) -> Subject: ...
    def update_subject(self, subject_id: int, **changes: Any) -> Subject | None: ...
    def delete_subject(self, subject_id: int) -> bool: ...

    def get_level(self, level_id: int) -> Level | None: ...
    def list_levels(self) -> list[Level]: ...
    def add_level(self, **fields: Any) -> Level: ...
    def update_level(self, level_id: int, **changes: Any) -> Level | None: ...
    def delete_level(self, level_id: int) -> bool: ...

    def get_class(self, class_id: int) -> SchoolClass | None: ...
    def list_classes(self, academic_year: str | None = None) -> list[SchoolClass]: ...
    def add_class(self, **fields: Any) -> SchoolClass: ...
    def update_class(self, class_id: int, **changes: Any) -> SchoolClass | None: ...
    def delete_class(self, class_id: int) -> bool: ...

    def get_chapter(self, chapter_id: int) -> Chapter | None: ...
    def list_chapters(
        self, *, subject_id: int | None = None, level_id: int | None = None
    ) -> list[Chapter]: ...
    def find_chapter(self, name: str, subject_id: int, level_id: int) -> Chapter | None: ...
    def add_chapter(self, **fields: Any) -> Chapter: ...

    def get_element(self, element_id: int) -> ChapterElement | None: ...
    def list_elements(self, chapter_id: int) -> list[ChapterElement]: ...
    def add_element(self, **fields: Any) -> ChapterElement: ...

    def get_lesson(self, lesson_id: int) -> Lesson | None: ...
    def list_lessons(
        self,
        *,
        academic_year: str | None = None,
        chapter_ids: Iterable[int] | None = None,
    ) -> list[Lesson]: ...
    def add_lesson(self, **fields: Any) -> Lesson: ...
    def update_lesson(self, lesson_id: int, **changes: Any) -> Lesson | None: ...
    def delete_lesson(self, lesson_id: int) -> bool: ...


class InMemoryCurriculumRepo:
    """Reference data kept in one repo; rows point at each other by id."""

    def __init__(self) -> None:
        self._years: InMemoryTable[AcademicYear] = InMemoryTable(AcademicYear)
        self._subjects: InMemoryTable[Subject] = InMemoryTable(Subject)
        self._levels: InMemoryTable[Level] = InMemoryTable(Level)
        self._classes: InMemoryTable[SchoolClass] = InMemoryTable(SchoolClass)
        self._chapters: InMemoryTable[Chapter] = InMemoryTable(Chapter)
        self._elements: InMemoryTable[ChapterElement] = InMemoryTable(ChapterElement)
        self._lessons: InMemoryTable[Lesson] = InMemoryTable(Lesson)

    # -- academic years ----------------------------------------------------

    def get_year(self, year_id: int) -> AcademicYear | None:
        return self._years.get(year_id)

    def get_year_by_name(self, name: str) -> AcademicYear | None:
        return self._years.find(lambda y: y.name == name)

    def list_years(self) -> list[AcademicYear]:
        return sorted(self._years.all(), key=lambda y: y.name, reverse=True)

    def active_year(self) -> AcademicYear | None:
        return self._years.find(lambda y: y.status == "active")

    def add_year(self, **fields: Any) -> AcademicYear:
        if self.get_year_by_name(fields["name"]) is not None:
            raise ValueError("academic year already exists")
        return self._years.insert(**fields)

    def update_year(self, year_id: int, **changes: Any) -> AcademicYear | None:
        return self._years.update(year_id, **changes)

    # -- subjects ----------------------------------------------------------

    def get_subject(self, subject_id: int) -> Subject | None:
        return self._subjects.get(subject_id)

    def list_subjects(self) -> list[Subject]:
        return sorted(self._subjects.all(), key=lambda s: s.name)

    def add_subject(self, **fields: Any) -> Subject:
        self._check_code(self._subjects, fields["code"], None)
        return self._subjects.insert(**fields)

    def update_subject(self, subject_id: int, **changes: Any) -> Subject | None:
        if "code" in changes:
            self._check_code(self._subjects, changes["code"], subject_id)
        return self._subjects.update(subject_id, **changes)

    def delete_subject(self, subject_id: int) -> bool:
        return self._subjects.delete(subject_id)

    # -- levels ------------------------------------------------------------

    def get_level(self, level_id: int) -> Level | None:
        return self._levels.get(level_id)

    def list_levels(self) -> list[Level]:
        return sorted(self._levels.all(), key=lambda lv: lv.id)

    def add_level(self, **fields: Any) -> Level:
        self._check_code(self._levels, fields["code"], None)
        return self._levels.insert(**fields)

    def update_level(self, level_id: int, **changes: Any) -> Level | None:
        if "code" in changes:
            self._check_code(self._levels, changes["code"], level_id)
        return self._levels.update(level_id, **changes)

    def delete_level(self, level_id: int) -> bool:
        return self._levels.delete(level_id)

    # -- classes -----------------------------------------------------------

    def get_class(self, class_id: int) -> SchoolClass | None:
        return self._classes.get(class_id)

    def list_classes(self, academic_year: str | None = None) -> list[SchoolClass]:
        rows = self._classes.all()
        if academic_year is not None:
            rows = [c for c in rows if c.academic_year == academic_year]
        return sorted(rows, key=lambda c: (c.level_id, c.name))

    def add_class(self, **fields: Any) -> SchoolClass:
        self._check_class_unique(
            fields["name"], fields["level_id"], fields["academic_year"], None
        )
        return self._classes.insert(**fields)

    def update_class(self, class_id: int, **changes: Any) -> SchoolClass | None:
        current = self._classes.get(class_id)
        if current is None:
            return None
        self._check_class_unique(
            changes.get("name", current.name),
            changes.get("level_id", current.level_id),
            changes.get("academic_year", current.academic_year),
            class_id,
        )
        return self._classes.update(class_id, **changes)

    def delete_class(self, class_id: int) -> bool:
        return self._classes.delete(class_id)

    # -- chapters and elements ---------------------------------------------

    def get_chapter(self, chapter_id: int) -> Chapter | None:
        return self._chapters.get(chapter_id)

    def list_chapters(
        self, *, subject_id: int | None = None, level_id: int | None = None
    ) -> list[Chapter]:
        rows = [
            c
            for c in self._chapters.all()
            if (subject_id is None or c.subject_id == subject_id)
            and (level_id is None or c.level_id == level_id)
        ]
        return sorted(rows, key=lambda c: (c.order_index, c.id))

    def find_chapter(self, name: str, subject_id: int, level_id: int) -> Chapter | None:
        return self._chapters.find(
            lambda c: c.name == name
            and c.subject_id == subject_id
            and c.level_id == level_id
        )

    def add_chapter(self, **fields: Any) -> Chapter:
        return self._chapters.insert(**fields)

    def get_element(self, element_id: int) -> ChapterElement | None:
        return self._elements.get(element_id)

    def list_elements(self, chapter_id: int) -> list[ChapterElement]:
        rows = self._elements.where(lambda e: e.chapter_id == chapter_id)
        return sorted(rows, key=lambda e: (e.order_index, e.id))

    def add_element(self, **fields: Any) -> ChapterElement:
        return self._elements.insert(**fields)

    # -- lessons -----------------------------------------------------------

    def get_lesson(self, lesson_id: int) -> Lesson | None:
        return self._lessons.get(lesson_id)

    def list_lessons(
        self,
        *,
        academic_year: str | None = None,
        chapter_ids: Iterable[int] | None = None,
    ) -> list[Lesson]:
        wanted = set(chapter_ids) if chapter_ids is not None else None
        rows = [
            lesson
            for lesson in self._lessons.all()
            if (academic_year is None or lesson.academic_year == academic_year)
            and (wanted is None or lesson.chapter_id in wanted)
        ]
        return sorted(rows, key=lambda lesson: (lesson.order_index, lesson.id))

    def add_lesson(self, **fields: Any) -> Lesson:
        return self._lessons.insert(**fields)

    def update_lesson(self, lesson_id: int, **changes: Any) -> Lesson | None:
        return self._lessons.update(lesson_id, **changes)

    def delete_lesson(self, lesson_id: int) -> bool:
        return self._lessons.delete(lesson_id)

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def _check_code(table: InMemoryTable, code: str, own_id: int | None) -> None:
        clash = table.find(lambda row: row.code == code)
        if clash is not None and clash.id != own_id:
            raise ValueError("code already exists")

    def _check_class_unique(
        self, name: str, level_id: int, academic_year: str, own_id: int | None
    ) -> None:
        clash = self._classes.find(
            lambda c: c.name == name
            and c.level_id == level_id
            and c.academic_year == academic_year
        )
        if clash is not None and clash.id != own_id:
            raise ValueError("class already exists for this level and year")
