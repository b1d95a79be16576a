from __future__ import annotations

from typing import Protocol

from edutrack.models.assignment import (
    InspectorAssignment,
    SgAssignment,
    TeacherAssignment,
)
from edutrack.repos.memory import InMemoryTable


class AssignmentRepo(Protocol):
    def add_teacher(
        self, teacher_id: int, class_id: int, subject_id: int, academic_year: str
    ) -> TeacherAssignment: ...
    def teacher_assignments(
        self,
        *,
        teacher_id: int | None = None,
        academic_year: str | None = None,
        class_id: int | None = None,
        subject_id: int | None = None,
    ) -> list[TeacherAssignment]: ...
    def add_inspector(
        self, inspector_id: int, subject_id: int, academic_year: str
    ) -> InspectorAssignment: ...
    def inspector_assignments(
        self,
        *,
        inspector_id: int | None = None,
        academic_year: str | None = None,
        subject_id: int | None = None,
    ) -> list[InspectorAssignment]: ...
    def add_sg(self, sg_id: int, cycle: str, academic_year: str) -> SgAssignment: ...
    def sg_assignments(
        self, *, sg_id: int | None = None, academic_year: str | None = None
    ) -> list[SgAssignment]: ...
    def delete_for_user(self, user_id: int) -> int: ...


class InMemoryAssignmentRepo:
    """Teacher, inspector and SG assignments, each scoped to an academic year.

    Listing returns active rows only; switching the selected year never
    deletes anything.
    """

    def __init__(self) -> None:
        self._teachers: InMemoryTable[TeacherAssignment] = InMemoryTable(
            TeacherAssignment
        )
        self._inspectors: InMemoryTable[InspectorAssignment] = InMemoryTable(
            InspectorAssignment
        )
        self._sgs: InMemoryTable[SgAssignment] = InMemoryTable(SgAssignment)

    def add_teacher(
        self, teacher_id: int, class_id: int, subject_id: int, academic_year: str
    ) -> TeacherAssignment:
        if self.teacher_assignments(
            teacher_id=teacher_id,
            class_id=class_id,
            subject_id=subject_id,
            academic_year=academic_year,
        ):
            raise ValueError("teacher assignment already exists")
        return self._teachers.insert(
            teacher_id=teacher_id,
            class_id=class_id,
            subject_id=subject_id,
            academic_year=academic_year,
        )

    def teacher_assignments(
        self,
        *,
        teacher_id: int | None = None,
        academic_year: str | None = None,
        class_id: int | None = None,
        subject_id: int | None = None,
    ) -> list[TeacherAssignment]:
        return sorted(
            self._teachers.where(
                lambda a: a.is_active
                and (teacher_id is None or a.teacher_id == teacher_id)
                and (academic_year is None or a.academic_year == academic_year)
                and (class_id is None or a.class_id == class_id)
                and (subject_id is None or a.subject_id == subject_id)
            ),
            key=lambda a: a.id,
        )

    def add_inspector(
        self, inspector_id: int, subject_id: int, academic_year: str
    ) -> InspectorAssignment:
        if self.inspector_assignments(
            inspector_id=inspector_id,
            subject_id=subject_id,
            academic_year=academic_year,
        ):
            raise ValueError("inspector assignment already exists")
        return self._inspectors.insert(
            inspector_id=inspector_id,
            subject_id=subject_id,
            academic_year=academic_year,
        )

    def inspector_assignments(
        self,
        *,
        inspector_id: int | None = None,
        academic_year: str | None = None,
        subject_id: int | None = None,
    ) -> list[InspectorAssignment]:
        return sorted(
            self._inspectors.where(
                lambda a: a.is_active
                and (inspector_id is None or a.inspector_id == inspector_id)
                and (academic_year is None or a.academic_year == academic_year)
                and (subject_id is None or a.subject_id == subject_id)
            ),
            key=lambda a: a.id,
        )

    def add_sg(self, sg_id: int, cycle: str, academic_year: str) -> SgAssignment:
        if self._sgs.find(
            lambda a: a.sg_id == sg_id
            and a.cycle == cycle
            and a.academic_year == academic_year
        ):
            raise ValueError("sg assignment already exists")
        return self._sgs.insert(sg_id=sg_id, cycle=cycle, academic_year=academic_year)

    def sg_assignments(
        self, *, sg_id: int | None = None, academic_year: str | None = None
    ) -> list[SgAssignment]:
        return sorted(
            self._sgs.where(
                lambda a: a.is_active
                and (sg_id is None or a.sg_id == sg_id)
                and (academic_year is None or a.academic_year == academic_year)
            ),
            key=lambda a: a.id,
        )

    def delete_for_user(self, user_id: int) -> int:
        return (
            self._teachers.delete_where(lambda a: a.teacher_id == user_id)
            + self._inspectors.delete_where(lambda a: a.inspector_id == user_id)
            + self._sgs.delete_where(lambda a: a.sg_id == user_id)
        )
