"""PostgreSQL implementation of CurriculumRepo."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from edutrack.db.session import SqlSessions
from edutrack.db.tables import (
    AcademicYearRow,
    ChapterElementRow,
    ChapterRow,
    ClassRow,
    LessonRow,
    LevelRow,
    SubjectRow,
)
from edutrack.models.curriculum import (
    AcademicYear,
    Chapter,
    ChapterElement,
    Lesson,
    Level,
    SchoolClass,
    Subject,
)
from edutrack.repos.pg_table import SqlTable


class PgCurriculumRepo:
    """Reference data on the curriculum tables, ordered as the in-memory repo orders it."""

    def __init__(self, sessions: SqlSessions) -> None:
        self._years: SqlTable[AcademicYear] = SqlTable(sessions, AcademicYearRow, AcademicYear)
        self._subjects: SqlTable[Subject] = SqlTable(sessions, SubjectRow, Subject)
        self._levels: SqlTable[Level] = SqlTable(sessions, LevelRow, Level)
        self._classes: SqlTable[SchoolClass] = SqlTable(sessions, ClassRow, SchoolClass)
        self._chapters: SqlTable[Chapter] = SqlTable(sessions, ChapterRow, Chapter)
        self._elements: SqlTable[ChapterElement] = SqlTable(
            sessions, ChapterElementRow, ChapterElement
        )
        self._lessons: SqlTable[Lesson] = SqlTable(sessions, LessonRow, Lesson)

    # -- academic years ----------------------------------------------------

    def get_year(self, year_id: int) -> AcademicYear | None:
        return self._years.get(year_id)

    def get_year_by_name(self, name: str) -> AcademicYear | None:
        return self._years.first(AcademicYearRow.name == name)

    def list_years(self) -> list[AcademicYear]:
        return self._years.select(order_by=[AcademicYearRow.name.desc()])

    def active_year(self) -> AcademicYear | None:
        return self._years.first(AcademicYearRow.status == "active")

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
        return self._subjects.select(order_by=[SubjectRow.name])

    def add_subject(self, **fields: Any) -> Subject:
        self._check_code(self._subjects, SubjectRow.code, fields["code"], None)
        return self._subjects.insert(**fields)

    def update_subject(self, subject_id: int, **changes: Any) -> Subject | None:
        if "code" in changes:
            self._check_code(self._subjects, SubjectRow.code, changes["code"], subject_id)
        return self._subjects.update(subject_id, **changes)

    def delete_subject(self, subject_id: int) -> bool:
        return self._subjects.delete(subject_id)

    # -- levels ------------------------------------------------------------

    def get_level(self, level_id: int) -> Level | None:
        return self._levels.get(level_id)

    def list_levels(self) -> list[Level]:
        return self._levels.select(order_by=[LevelRow.id])

    def add_level(self, **fields: Any) -> Level:
        self._check_code(self._levels, LevelRow.code, fields["code"], None)
        return self._levels.insert(**fields)

    def update_level(self, level_id: int, **changes: Any) -> Level | None:
        if "code" in changes:
            self._check_code(self._levels, LevelRow.code, changes["code"], level_id)
        return self._levels.update(level_id, **changes)

    def delete_level(self, level_id: int) -> bool:
        return self._levels.delete(level_id)

    # -- classes -----------------------------------------------------------

    def get_class(self, class_id: int) -> SchoolClass | None:
        return self._classes.get(class_id)

    def list_classes(self, academic_year: str | None = None) -> list[SchoolClass]:
        criteria = [] if academic_year is None else [ClassRow.academic_year == academic_year]
        return self._classes.select(*criteria, order_by=[ClassRow.level_id, ClassRow.name])

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
        criteria = []
        if subject_id is not None:
            criteria.append(ChapterRow.subject_id == subject_id)
        if level_id is not None:
            criteria.append(ChapterRow.level_id == level_id)
        return self._chapters.select(*criteria, order_by=[ChapterRow.order_index, ChapterRow.id])

    def find_chapter(self, name: str, subject_id: int, level_id: int) -> Chapter | None:
        return self._chapters.first(
            ChapterRow.name == name,
            ChapterRow.subject_id == subject_id,
            ChapterRow.level_id == level_id,
        )

    def add_chapter(self, **fields: Any) -> Chapter:
        return self._chapters.insert(**fields)

    def get_element(self, element_id: int) -> ChapterElement | None:
        return self._elements.get(element_id)

    def list_elements(self, chapter_id: int) -> list[ChapterElement]:
        return self._elements.select(
            ChapterElementRow.chapter_id == chapter_id,
            order_by=[ChapterElementRow.order_index, ChapterElementRow.id],
        )

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
        criteria = []
        if academic_year is not None:
            criteria.append(LessonRow.academic_year == academic_year)
        if chapter_ids is not None:
            criteria.append(LessonRow.chapter_id.in_(list(chapter_ids)))
        return self._lessons.select(*criteria, order_by=[LessonRow.order_index, LessonRow.id])

    def add_lesson(self, **fields: Any) -> Lesson:
        return self._lessons.insert(**fields)

    def update_lesson(self, lesson_id: int, **changes: Any) -> Lesson | None:
        return self._lessons.update(lesson_id, **changes)

    def delete_lesson(self, lesson_id: int) -> bool:
        return self._lessons.delete(lesson_id)

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def _check_code(
        table: SqlTable[Any], column: Any, code: str, own_id: int | None
    ) -> None:
        clash = table.first(column == code)
        if clash is not None and clash.id != own_id:
            raise ValueError("code already exists")

    def _check_class_unique(
        self, name: str, level_id: int, academic_year: str, own_id: int | None
    ) -> None:
        clash = self._classes.first(
            ClassRow.name == name,
            ClassRow.level_id == level_id,
            ClassRow.academic_year == academic_year,
        )
        if clash is not None and clash.id != own_id:
            raise ValueError("class already exists for this level and year")
