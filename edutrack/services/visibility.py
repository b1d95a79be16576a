"""Role-scoped read filters.

build_scope() resolves the requester's assignments for one academic year
into an immutable AccessScope. Every read goes through the helpers below
and every engine mutation receives the same scope, so there is exactly one
definition of "what this requester may see":

    role       progressions               teachers                  classes
    teacher    own                        self                      assigned
    inspector  lesson subject in subjects  assigned on those subjects classes they teach
    sg         class cycle in cycles      teaching in those cycles  classes in cycles
    founder    all                        all                       all
    admin      all                        all                       all

Progressions are always limited to lessons of the scope's academic year,
and a requester with no assignment for that year sees nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from edutrack.models.curriculum import Lesson, SchoolClass
from edutrack.models.principal import Principal
from edutrack.models.progression import LessonProgression
from edutrack.models.user import ADMIN, FOUNDER, INSPECTOR, SG, TEACHER, User
from edutrack.repos.store import Store

logger = logging.getLogger(__name__)

_UNRESTRICTED = frozenset({FOUNDER, ADMIN})


@dataclass(frozen=True, slots=True)
class AccessScope:
    user_id: int
    role: str
    academic_year: str
    teaching_pairs: frozenset[tuple[int, int]] = frozenset()  # (class_id, subject_id)
    subject_ids: frozenset[int] = frozenset()
    cycles: frozenset[str] = frozenset()

    @property
    def unrestricted(self) -> bool:
        return self.role in _UNRESTRICTED

    def teaches(self, class_id: int, subject_id: int) -> bool:
        return (class_id, subject_id) in self.teaching_pairs

    def inspects(self, subject_id: int) -> bool:
        return subject_id in self.subject_ids

    def supervises(self, cycle: str) -> bool:
        return cycle in self.cycles


def build_scope(store: Store, principal: Principal, academic_year: str) -> AccessScope:
    pairs: frozenset[tuple[int, int]] = frozenset()
    subjects: frozenset[int] = frozenset()
    cycles: frozenset[str] = frozenset()

    if principal.role == TEACHER:
        rows = store.assignments.teacher_assignments(
            teacher_id=principal.user_id, academic_year=academic_year
        )
        pairs = frozenset((a.class_id, a.subject_id) for a in rows)
        subjects = frozenset(a.subject_id for a in rows)
    elif principal.role == INSPECTOR:
        rows_i = store.assignments.inspector_assignments(
            inspector_id=principal.user_id, academic_year=academic_year
        )
        subjects = frozenset(a.subject_id for a in rows_i)
    elif principal.role == SG:
        rows_s = store.assignments.sg_assignments(
            sg_id=principal.user_id, academic_year=academic_year
        )
        cycles = frozenset(a.cycle for a in rows_s)

    scope = AccessScope(
        user_id=principal.user_id,
        role=principal.role,
        academic_year=academic_year,
        teaching_pairs=pairs,
        subject_ids=subjects,
        cycles=cycles,
    )
    logger.debug(
        "Scope built user=%s role=%s year=%s pairs=%d subjects=%d cycles=%d",
        scope.user_id,
        scope.role,
        academic_year,
        len(pairs),
        len(subjects),
        len(cycles),
    )
    return scope


# ---------------------------------------------------------------------------
# Lookups shared with the engine and reporting
# ---------------------------------------------------------------------------


def lesson_subject_id(store: Store, lesson: Lesson) -> int | None:
    chapter = store.curriculum.get_chapter(lesson.chapter_id)
    return chapter.subject_id if chapter else None


def class_cycle(store: Store, school_class: SchoolClass) -> str | None:
    level = store.curriculum.get_level(school_class.level_id)
    return level.category if level else None


def _cycle_of_class_id(store: Store, class_id: int) -> str | None:
    school_class = store.curriculum.get_class(class_id)
    return class_cycle(store, school_class) if school_class else None


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def can_see_progression(store: Store, scope: AccessScope, p: LessonProgression) -> bool:
    lesson = store.curriculum.get_lesson(p.lesson_id)
    if lesson is None or lesson.academic_year != scope.academic_year:
        return False
    if scope.unrestricted:
        return True
    if scope.role == TEACHER:
        return p.teacher_id == scope.user_id
    if scope.role == INSPECTOR:
        return lesson_subject_id(store, lesson) in scope.subject_ids
    if scope.role == SG:
        return _cycle_of_class_id(store, p.class_id) in scope.cycles
    return False


def visible_progressions(
    store: Store, scope: AccessScope, *, teacher_id: int | None = None
) -> list[LessonProgression]:
    return [
        p
        for p in store.progressions.list_all()
        if (teacher_id is None or p.teacher_id == teacher_id)
        and can_see_progression(store, scope, p)
    ]


def visible_teacher_ids(store: Store, scope: AccessScope) -> set[int]:
    if scope.role == TEACHER:
        return {scope.user_id}
    if scope.unrestricted:
        return {u.id for u in store.users.list_by_role(TEACHER)}
    rows = store.assignments.teacher_assignments(academic_year=scope.academic_year)
    if scope.role == INSPECTOR:
        return {a.teacher_id for a in rows if a.subject_id in scope.subject_ids}
    if scope.role == SG:
        return {
            a.teacher_id
            for a in rows
            if _cycle_of_class_id(store, a.class_id) in scope.cycles
        }
    return set()


def visible_teachers(store: Store, scope: AccessScope) -> list[User]:
    ids = visible_teacher_ids(store, scope)
    return [u for u in store.users.list_by_role(TEACHER) if u.id in ids]


def can_see_teacher(store: Store, scope: AccessScope, teacher_id: int) -> bool:
    return teacher_id in visible_teacher_ids(store, scope)


def visible_classes(store: Store, scope: AccessScope) -> list[SchoolClass]:
    year_classes = store.curriculum.list_classes(academic_year=scope.academic_year)
    if scope.unrestricted:
        return year_classes
    if scope.role == TEACHER:
        ids = {class_id for class_id, _ in scope.teaching_pairs}
    elif scope.role == INSPECTOR:
        ids = {
            a.class_id
            for a in store.assignments.teacher_assignments(
                academic_year=scope.academic_year
            )
            if a.subject_id in scope.subject_ids
        }
    elif scope.role == SG:
        return [c for c in year_classes if class_cycle(store, c) in scope.cycles]
    else:
        return []
    # Assignments are year-scoped, classes may carry a different year label.
    return [c for c in store.curriculum.list_classes() if c.id in ids]
