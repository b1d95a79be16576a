"""PostgreSQL implementation of AssignmentRepo."""

from __future__ import annotations

from edutrack.db.session import SqlSessions
from edutrack.db.tables import (
    InspectorAssignmentRow,
    SgAssignmentRow,
    TeacherAssignmentRow,
)
from edutrack.models.assignment import (
    InspectorAssignment,
    SgAssignment,
    TeacherAssignment,
)
from edutrack.repos.pg_table import SqlTable


class PgAssignmentRepo:
    """Assignment tables; listings return active rows only, by id."""

    def __init__(self, sessions: SqlSessions) -> None:
        self._teachers: SqlTable[TeacherAssignment] = SqlTable(
            sessions, TeacherAssignmentRow, TeacherAssignment
        )
        self._inspectors: SqlTable[InspectorAssignment] = SqlTable(
            sessions, InspectorAssignmentRow, InspectorAssignment
        )
        self._sgs: SqlTable[SgAssignment] = SqlTable(sessions, SgAssignmentRow, SgAssignment)

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
            is_active=True,
        )

    def teacher_assignments(
        self,
        *,
        teacher_id: int | None = None,
        academic_year: str | None = None,
        class_id: int | None = None,
        subject_id: int | None = None,
    ) -> list[TeacherAssignment]:
        row = TeacherAssignmentRow
        criteria = [row.is_active.is_(True)]
        if teacher_id is not None:
            criteria.append(row.teacher_id == teacher_id)
        if academic_year is not None:
            criteria.append(row.academic_year == academic_year)
        if class_id is not None:
            criteria.append(row.class_id == class_id)
        if subject_id is not None:
            criteria.append(row.subject_id == subject_id)
        return self._teachers.select(*criteria, order_by=[row.id])

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
            is_active=True,
        )

    def inspector_assignments(
        self,
        *,
        inspector_id: int | None = None,
        academic_year: str | None = None,
        subject_id: int | None = None,
    ) -> list[InspectorAssignment]:
        row = InspectorAssignmentRow
        criteria = [row.is_active.is_(True)]
        if inspector_id is not None:
            criteria.append(row.inspector_id == inspector_id)
        if academic_year is not None:
            criteria.append(row.academic_year == academic_year)
        if subject_id is not None:
            criteria.append(row.subject_id == subject_id)
        return self._inspectors.select(*criteria, order_by=[row.id])

    def add_sg(self, sg_id: int, cycle: str, academic_year: str) -> SgAssignment:
        if self._sgs.first(
            SgAssignmentRow.sg_id == sg_id,
            SgAssignmentRow.cycle == cycle,
            SgAssignmentRow.academic_year == academic_year,
        ):
            raise ValueError("sg assignment already exists")
        return self._sgs.insert(
            sg_id=sg_id, cycle=cycle, academic_year=academic_year, is_active=True
        )

    def sg_assignments(
        self, *, sg_id: int | None = None, academic_year: str | None = None
    ) -> list[SgAssignment]:
        criteria = [SgAssignmentRow.is_active.is_(True)]
        if sg_id is not None:
            criteria.append(SgAssignmentRow.sg_id == sg_id)
        if academic_year is not None:
            criteria.append(SgAssignmentRow.academic_year == academic_year)
        return self._sgs.select(*criteria, order_by=[SgAssignmentRow.id])

    def delete_for_user(self, user_id: int) -> int:
        return (
            self._teachers.delete_where(TeacherAssignmentRow.teacher_id == user_id)
            + self._inspectors.delete_where(InspectorAssignmentRow.inspector_id == user_id)
            + self._sgs.delete_where(SgAssignmentRow.sg_id == user_id)
        )
