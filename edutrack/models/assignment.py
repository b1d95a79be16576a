from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TeacherAssignment:
    """Authorizes a teacher to act on one (class, subject) pair for a year."""

    id: int
    teacher_id: int
    class_id: int
    subject_id: int
    academic_year: str
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class InspectorAssignment:
    id: int
    inspector_id: int
    subject_id: int
    academic_year: str
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class SgAssignment:
    id: int
    sg_id: int
    cycle: str  # a level category, see models.curriculum.CYCLES
    academic_year: str
    is_active: bool = True
