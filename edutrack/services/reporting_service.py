"""Read-only aggregates for founder and SG dashboards.

Everything is recomputed per request from the scope-visible progressions,
so a reporting view can never show a row the requester could not list.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass

from edutrack.core.errors import PermissionDeniedError
from edutrack.models.progression import CONTROL_SESSION, VALIDATED, LessonProgression
from edutrack.models.user import SG, User
from edutrack.repos.store import Store
from edutrack.services.durations import hours
from edutrack.services.visibility import (
    AccessScope,
    class_cycle,
    lesson_subject_id,
    visible_progressions,
    visible_teachers,
)

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12
WEEKS_PER_MONTH = 4
MONTHS_PER_SEMESTER = 6
MONTHLY_TARGET_HOURS = 80


@dataclass(frozen=True, slots=True)
class TeacherStatistics:
    teacher: User
    total_lessons: int
    completed_lessons: int
    validated_lessons: int
    progress_percentage: int
    planned_controls: int
    completed_controls: int


@dataclass(frozen=True, slots=True)
class TeacherHours:
    teacher: User
    subjects: list[str]
    classes: list[str]
    weekly_hours: float
    monthly_hours: float
    semester_hours: float
    yearly_hours: float
    projected_salary: float


@dataclass(frozen=True, slots=True)
class MonthlyHours:
    teacher_id: int
    teacher_name: str
    subject: str
    classes: list[str]
    planned_hours: float
    actual_hours: float
    completed_lessons: int
    total_lessons: int
    monthly_target: int = MONTHLY_TARGET_HOURS


def _by_teacher(rows: list[LessonProgression]) -> dict[int, list[LessonProgression]]:
    grouped: dict[int, list[LessonProgression]] = defaultdict(list)
    for p in rows:
        grouped[p.teacher_id].append(p)
    return grouped


def _class_label(store: Store, class_id: int) -> str | None:
    school_class = store.curriculum.get_class(class_id)
    if school_class is None:
        return None
    level = store.curriculum.get_level(school_class.level_id)
    return f"{school_class.name} ({level.name if level else '?'})"


def _dedupe(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def teacher_statistics(store: Store, scope: AccessScope) -> list[TeacherStatistics]:
    """Per visible teacher: lesson counts, progress and real control counts.

    Controls are progressions whose session type is "control"; completed
    controls are those among them that are completed or validated.
    """
    grouped = _by_teacher(visible_progressions(store, scope))
    result = []
    for teacher in visible_teachers(store, scope):
        rows = grouped.get(teacher.id, [])
        total = len(rows)
        completed = sum(1 for p in rows if p.is_done)
        controls = [p for p in rows if p.session_type == CONTROL_SESSION]
        result.append(
            TeacherStatistics(
                teacher=teacher,
                total_lessons=total,
                completed_lessons=completed,
                validated_lessons=sum(1 for p in rows if p.status == VALIDATED),
                progress_percentage=round(completed / total * 100) if total else 0,
                planned_controls=len(controls),
                completed_controls=sum(1 for p in controls if p.is_done),
            )
        )
    return result


def teacher_hours(store: Store, scope: AccessScope) -> list[TeacherHours]:
    """Hourly volumes and projected pay for every teacher with assignments.

    Yearly hours come from actual durations; the shorter periods are flat
    fractions of the year (month = year / 12, week = month / 4,
    semester = month x 6).
    """
    assignments = store.assignments.teacher_assignments(academic_year=scope.academic_year)
    grouped = _by_teacher(visible_progressions(store, scope))
    visible_ids = {u.id for u in visible_teachers(store, scope)}

    by_teacher: dict[int, list] = defaultdict(list)
    for a in assignments:
        if a.teacher_id in visible_ids:
            by_teacher[a.teacher_id].append(a)

    result = []
    for teacher_id, rows in sorted(by_teacher.items()):
        teacher = store.users.get_by_id(teacher_id)
        if teacher is None:
            continue
        subjects = _dedupe(
            [s.name for a in rows if (s := store.curriculum.get_subject(a.subject_id))]
        )
        classes = _dedupe(
            [label for a in rows if (label := _class_label(store, a.class_id))]
        )
        minutes = sum(p.actual_duration_minutes or 0 for p in grouped.get(teacher_id, []))
        yearly = minutes / 60
        monthly = yearly / MONTHS_PER_YEAR
        result.append(
            TeacherHours(
                teacher=teacher,
                subjects=subjects,
                classes=classes,
                weekly_hours=round(monthly / WEEKS_PER_MONTH, 2),
                monthly_hours=round(monthly, 2),
                semester_hours=round(monthly * MONTHS_PER_SEMESTER, 2),
                yearly_hours=round(yearly, 2),
                projected_salary=round(yearly * teacher.hourly_rate, 2),
            )
        )
    return result


def monthly_hours(
    store: Store,
    scope: AccessScope,
    *,
    month: int | None = None,
    year: int | None = None,
) -> list[MonthlyHours]:
    """SG view: planned and delivered hours per teacher and subject.

    When month and/or year are given, only progressions whose actual date
    falls in that period count.
    """
    if scope.role != SG:
        raise PermissionDeniedError("monthly hours are reserved to SG staff")

    groups: dict[tuple[int, int], list[str]] = defaultdict(list)
    for a in store.assignments.teacher_assignments(academic_year=scope.academic_year):
        school_class = store.curriculum.get_class(a.class_id)
        if school_class is None or class_cycle(store, school_class) not in scope.cycles:
            continue
        label = _class_label(store, a.class_id)
        if label:
            groups[(a.teacher_id, a.subject_id)].append(label)

    progressions = visible_progressions(store, scope)
    year_lessons = store.curriculum.list_lessons(academic_year=scope.academic_year)

    result = []
    for (teacher_id, subject_id), labels in sorted(groups.items()):
        teacher = store.users.get_by_id(teacher_id)
        subject = store.curriculum.get_subject(subject_id)
        if teacher is None or subject is None:
            continue

        planned_minutes = actual_minutes = completed = 0
        for p in progressions:
            if p.teacher_id != teacher_id:
                continue
            lesson = store.curriculum.get_lesson(p.lesson_id)
            if lesson is None or lesson_subject_id(store, lesson) != subject_id:
                continue
            if month is not None or year is not None:
                if p.actual_date is None:
                    continue
                if month is not None and p.actual_date.month != month:
                    continue
                if year is not None and p.actual_date.year != year:
                    continue
            planned_minutes += lesson.planned_duration_minutes
            actual_minutes += p.actual_duration_minutes or 0
            if p.is_done:
                completed += 1

        total_lessons = sum(
            1 for lesson in year_lessons if lesson_subject_id(store, lesson) == subject_id
        )
        result.append(
            MonthlyHours(
                teacher_id=teacher_id,
                teacher_name=teacher.full_name,
                subject=subject.name,
                classes=_dedupe(labels),
                planned_hours=hours(planned_minutes),
                actual_hours=hours(actual_minutes),
                completed_lessons=completed,
                total_lessons=total_lessons,
            )
        )
    logger.debug("Monthly hours  sg=%s month=%s year=%s rows=%d", scope.user_id, month, year, len(result))
    return result
