"""Progression engine: the lesson delivery lifecycle.

    (none) --plan--> planned --mark_completed--> completed --validate--> validated
                        \\______mark_completed______/  ^                    |
                                                      \\______reopen_______/

One row per (lesson, class, teacher). "delayed" is never stored; it is
derived by models.progression.effective_status().

Every operation takes the request's AccessScope and re-checks
authorization itself: a teacher acts only on (class, subject) pairs
assigned for the scope's year, an inspector only on lessons of their
subjects. A validated row is never overwritten by mark_completed; it has
to be reopened first.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime

from edutrack.core.errors import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from edutrack.core.metrics import PROGRESSION_TRANSITIONS
from edutrack.models.curriculum import Lesson, SchoolClass
from edutrack.models.progression import (
    COMPLETED,
    DELAYED,
    PLANNED,
    SESSION_TYPES,
    VALIDATED,
    LessonProgression,
    effective_status,
)
from edutrack.models.user import INSPECTOR, TEACHER
from edutrack.repos.store import Store
from edutrack.services import notification_service
from edutrack.services.durations import hours
from edutrack.services.visibility import (
    AccessScope,
    lesson_subject_id,
    visible_progressions,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProgressionStats:
    total_lessons: int
    completed_lessons: int
    validated_lessons: int
    delayed_lessons: int
    total_planned_hours: float
    total_actual_hours: float


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def _require_role(scope: AccessScope, role: str, action: str) -> None:
    if scope.role != role:
        logger.warning(
            "Progression %s refused: user=%s role=%s", action, scope.user_id, scope.role
        )
        raise PermissionDeniedError(f"only a {role} can {action} a lesson")


def _teacher_target(
    store: Store, scope: AccessScope, lesson_id: int, class_id: int, action: str
) -> tuple[Lesson, SchoolClass, int]:
    _require_role(scope, TEACHER, action)
    lesson = store.curriculum.get_lesson(lesson_id)
    if lesson is None:
        raise NotFoundError("lesson", lesson_id)
    school_class = store.curriculum.get_class(class_id)
    if school_class is None:
        raise NotFoundError("class", class_id)
    if lesson.academic_year != scope.academic_year:
        raise ValidationError(
            f"lesson {lesson_id} belongs to academic year {lesson.academic_year}, "
            f"not {scope.academic_year}"
        )
    subject_id = lesson_subject_id(store, lesson)
    if subject_id is None or not scope.teaches(class_id, subject_id):
        logger.warning(
            "Progression %s refused: teacher=%s not assigned class=%s subject=%s year=%s",
            action,
            scope.user_id,
            class_id,
            subject_id,
            scope.academic_year,
        )
        raise PermissionDeniedError(
            "you are not assigned to this class and subject for the academic year"
        )
    return lesson, school_class, subject_id


def _inspector_target(
    store: Store, scope: AccessScope, progression_id: int, action: str
) -> tuple[LessonProgression, Lesson]:
    _require_role(scope, INSPECTOR, action)
    progression = store.progressions.get(progression_id)
    if progression is None:
        raise NotFoundError("progression", progression_id)
    lesson = store.curriculum.get_lesson(progression.lesson_id)
    if lesson is None:
        raise NotFoundError("lesson", progression.lesson_id)
    if lesson.academic_year != scope.academic_year:
        raise ValidationError(
            f"progression {progression_id} belongs to academic year {lesson.academic_year}, "
            f"not {scope.academic_year}"
        )
    subject_id = lesson_subject_id(store, lesson)
    if subject_id is None or not scope.inspects(subject_id):
        logger.warning(
            "Progression %s refused: inspector=%s subject=%s not in %s",
            action,
            scope.user_id,
            subject_id,
            sorted(scope.subject_ids),
        )
        raise PermissionDeniedError("this progression is outside your subjects")
    return progression, lesson


def _updated(store: Store, progression_id: int, **fields: object) -> LessonProgression:
    row = store.progressions.update(progression_id, **fields)
    if row is None:
        raise NotFoundError("progression", progression_id)
    return row


def _check_elements(store: Store, lesson: Lesson, element_ids: Iterable[int]) -> frozenset[int]:
    ids = frozenset(element_ids)
    for element_id in ids:
        element = store.curriculum.get_element(element_id)
        if element is None or element.chapter_id != lesson.chapter_id:
            raise ValidationError(
                f"chapter element {element_id} does not belong to the lesson's chapter"
            )
    return ids


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def plan(store: Store, scope: AccessScope, *, lesson_id: int, class_id: int) -> LessonProgression:
    """Create the planned row, or return the existing one untouched."""
    with store.transaction():
        _teacher_target(store, scope, lesson_id, class_id, "plan")
        existing = store.progressions.get_by_key(lesson_id, class_id, scope.user_id)
        if existing is not None:
            return existing
        now = datetime.now(UTC)
        row = store.progressions.add(
            lesson_id=lesson_id,
            class_id=class_id,
            teacher_id=scope.user_id,
            status=PLANNED,
            created_at=now,
            updated_at=now,
        )
    PROGRESSION_TRANSITIONS.labels(from_status="none", to_status=PLANNED).inc()
    logger.info(
        "Lesson planned  progression=%s lesson=%s class=%s teacher=%s",
        row.id,
        lesson_id,
        class_id,
        scope.user_id,
    )
    return row


def mark_completed(
    store: Store,
    scope: AccessScope,
    *,
    lesson_id: int,
    class_id: int,
    actual_date: date,
    actual_duration_minutes: int,
    notes: str | None = None,
    session_type: str = "lesson",
    chapter_element_ids: Iterable[int] = (),
) -> LessonProgression:
    if actual_duration_minutes <= 0:
        raise ValidationError("actual duration must be positive")
    if session_type not in SESSION_TYPES:
        raise ValidationError(f"session type must be one of {', '.join(SESSION_TYPES)}")

    with store.transaction():
        lesson, school_class, subject_id = _teacher_target(
            store, scope, lesson_id, class_id, "complete"
        )
        elements = _check_elements(store, lesson, chapter_element_ids)
        now = datetime.now(UTC)
        fields = dict(
            status=COMPLETED,
            actual_date=actual_date,
            actual_duration_minutes=actual_duration_minutes,
            notes=notes,
            session_type=session_type,
            chapter_element_ids=elements,
            completed_at=now,
            updated_at=now,
        )

        existing = store.progressions.get_by_key(lesson_id, class_id, scope.user_id)
        if existing is None:
            previous = "none"
            row = store.progressions.add(
                lesson_id=lesson_id,
                class_id=class_id,
                teacher_id=scope.user_id,
                created_at=now,
                **fields,
            )
        else:
            if existing.status == VALIDATED:
                raise InvalidTransitionError(existing.id, VALIDATED, COMPLETED)
            previous = existing.status
            row = _updated(store, existing.id, **fields)

        teacher = store.users.get_by_id(scope.user_id)
        teacher_name = teacher.full_name if teacher else f"teacher {scope.user_id}"
        for assignment in store.assignments.inspector_assignments(
            subject_id=subject_id, academic_year=scope.academic_year
        ):
            notification_service.notify(
                store,
                user_id=assignment.inspector_id,
                type="progression_completed",
                title="New progression to validate",
                message=(
                    f'{teacher_name} completed lesson "{lesson.title}" '
                    f"({school_class.name})"
                ),
                entity_type="progression",
                entity_id=row.id,
                priority="high",
            )

    PROGRESSION_TRANSITIONS.labels(from_status=previous, to_status=COMPLETED).inc()
    logger.info(
        "Lesson completed  progression=%s lesson=%s class=%s teacher=%s from=%s",
        row.id,
        lesson_id,
        class_id,
        scope.user_id,
        previous,
    )
    return row


def validate(store: Store, scope: AccessScope, progression_id: int) -> LessonProgression:
    with store.transaction():
        progression, lesson = _inspector_target(store, scope, progression_id, "validate")
        if progression.status != COMPLETED:
            raise InvalidTransitionError(progression.id, progression.status, VALIDATED)
        now = datetime.now(UTC)
        row = _updated(
            store,
            progression.id,
            status=VALIDATED,
            validated_by=scope.user_id,
            validated_at=now,
            updated_at=now,
        )
        notification_service.notify(
            store,
            user_id=progression.teacher_id,
            type="validation",
            title="Lesson validated",
            message=f'Your lesson "{lesson.title}" was validated by the inspector.',
            entity_type="progression",
            entity_id=progression.id,
        )
    PROGRESSION_TRANSITIONS.labels(from_status=COMPLETED, to_status=VALIDATED).inc()
    logger.info("Progression validated  id=%s inspector=%s", row.id, scope.user_id)
    return row


def reopen(store: Store, scope: AccessScope, progression_id: int) -> LessonProgression:
    """Move a validated row back to completed so the teacher can amend it."""
    with store.transaction():
        progression, lesson = _inspector_target(store, scope, progression_id, "reopen")
        if progression.status != VALIDATED:
            raise InvalidTransitionError(progression.id, progression.status, COMPLETED)
        row = _updated(
            store,
            progression.id,
            status=COMPLETED,
            validated_by=None,
            validated_at=None,
            updated_at=datetime.now(UTC),
        )
        notification_service.notify(
            store,
            user_id=progression.teacher_id,
            type="reopened",
            title="Lesson reopened",
            message=f'Your lesson "{lesson.title}" was reopened by the inspector.',
            entity_type="progression",
            entity_id=progression.id,
        )
    PROGRESSION_TRANSITIONS.labels(from_status=VALIDATED, to_status=COMPLETED).inc()
    logger.info("Progression reopened  id=%s inspector=%s", row.id, scope.user_id)
    return row


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


def lessons_for_pair(
    store: Store, scope: AccessScope, *, class_id: int, subject_id: int
) -> list[tuple[Lesson, LessonProgression | None]]:
    """The year's lessons of a (class, subject) with the teacher's own row.

    Lessons come from the chapters of the subject at the class's level,
    ordered by chapter then lesson order.
    """
    _require_role(scope, TEACHER, "list")
    school_class = store.curriculum.get_class(class_id)
    if school_class is None:
        raise NotFoundError("class", class_id)
    if not scope.teaches(class_id, subject_id):
        logger.warning(
            "Lesson listing refused: teacher=%s class=%s subject=%s year=%s",
            scope.user_id,
            class_id,
            subject_id,
            scope.academic_year,
        )
        raise PermissionDeniedError(
            "you are not assigned to this class and subject for the academic year"
        )

    chapters = store.curriculum.list_chapters(
        subject_id=subject_id, level_id=school_class.level_id
    )
    chapter_rank = {c.id: (c.order_index, c.id) for c in chapters}
    lessons = store.curriculum.list_lessons(
        academic_year=scope.academic_year, chapter_ids=set(chapter_rank)
    )
    lessons.sort(
        key=lambda lesson: (chapter_rank[lesson.chapter_id], lesson.order_index, lesson.id)
    )
    return [
        (lesson, store.progressions.get_by_key(lesson.id, class_id, scope.user_id))
        for lesson in lessons
    ]


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def compute_stats(
    store: Store,
    scope: AccessScope,
    *,
    teacher_id: int | None = None,
    today: date | None = None,
) -> ProgressionStats:
    today = today or datetime.now(UTC).date()
    rows = visible_progressions(store, scope, teacher_id=teacher_id)

    completed = validated = delayed = 0
    planned_minutes = actual_minutes = 0
    for p in rows:
        lesson = store.curriculum.get_lesson(p.lesson_id)
        if lesson is None:
            continue
        if p.is_done:
            completed += 1
        if p.status == VALIDATED:
            validated += 1
        if effective_status(p.status, lesson.planned_date, today) == DELAYED:
            delayed += 1
        planned_minutes += lesson.planned_duration_minutes
        actual_minutes += p.actual_duration_minutes or 0

    return ProgressionStats(
        total_lessons=len(rows),
        completed_lessons=completed,
        validated_lessons=validated,
        delayed_lessons=delayed,
        total_planned_hours=hours(planned_minutes),
        total_actual_hours=hours(actual_minutes),
    )
