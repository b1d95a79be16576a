"""Reference data: academic years, subjects, levels, classes, chapters, lessons."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

# Level categories double as the cycles SG staff are assigned to.
CYCLES = ("maternelle", "primaire", "college", "lycee")


@dataclass(frozen=True, slots=True)
class AcademicYear:
    id: int
    name: str  # "2024-2025"
    start_date: date
    end_date: date
    status: str = "inactive"  # active|inactive|archived


@dataclass(frozen=True, slots=True)
class Subject:
    id: int
    name: str
    code: str
    description: str = ""


@dataclass(frozen=True, slots=True)
class Level:
    id: int
    name: str  # "6ème", "Seconde"...
    code: str
    category: str  # one of CYCLES


@dataclass(frozen=True, slots=True)
class SchoolClass:
    id: int
    name: str
    level_id: int
    academic_year: str
    floor: str | None = None
    capacity: int | None = None
    interactive_board: bool = False
    whiteboard: bool = False
    projector: bool = False
    camera: bool = False
    delegate: str | None = None
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class Chapter:
    id: int
    name: str
    subject_id: int
    level_id: int
    order_index: int = 1
    trimester: int = 1  # 1, 2 or 3


@dataclass(frozen=True, slots=True)
class ChapterElement:
    id: int
    chapter_id: int
    title: str
    description: str | None = None
    order_index: int = 0
    estimated_duration_minutes: int = 55


@dataclass(frozen=True, slots=True)
class Lesson:
    id: int
    title: str
    chapter_id: int
    planned_duration_minutes: int
    academic_year: str
    created_at: datetime
    objectives: str | None = None
    planned_date: date | None = None
    order_index: int = 0
    is_active: bool = True
