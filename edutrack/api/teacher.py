from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from edutrack.api.dependencies import scope_for
from edutrack.api.schemas import (
    ChapterElementOut,
    CompleteIn,
    LessonOut,
    LessonProgressOut,
    PlanIn,
    ProgressionOut,
    StatsOut,
    TeacherAssignmentOut,
)
from edutrack.models.progression import effective_status
from edutrack.models.user import TEACHER
from edutrack.repos.store import store
from edutrack.services import curriculum_service, progression_service
from edutrack.services.visibility import AccessScope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/teacher", tags=["teacher"])

TeacherScope = Annotated[AccessScope, Depends(scope_for({TEACHER}))]


@router.get("/assignments", response_model=list[TeacherAssignmentOut])
def get_assignments(scope: TeacherScope) -> list[TeacherAssignmentOut]:
    rows = (
        TeacherAssignmentOut.of(store, class_id, subject_id, scope.academic_year)
        for class_id, subject_id in sorted(scope.teaching_pairs)
    )
    return [r for r in rows if r is not None]


@router.get("/stats", response_model=StatsOut)
def get_stats(scope: TeacherScope) -> StatsOut:
    return StatsOut.of(progression_service.compute_stats(store, scope))


@router.get("/lessons", response_model=list[LessonProgressOut])
def get_lessons(
    scope: TeacherScope,
    class_id: Annotated[int, Query(alias="classId")],
    subject_id: Annotated[int, Query(alias="subjectId")],
) -> list[LessonProgressOut]:
    today = datetime.now(UTC).date()
    rows = progression_service.lessons_for_pair(
        store, scope, class_id=class_id, subject_id=subject_id
    )
    out: list[LessonProgressOut] = []
    for lesson, progression in rows:
        chapter = store.curriculum.get_chapter(lesson.chapter_id)
        out.append(
            LessonProgressOut(
                **LessonOut.of(store, lesson).model_dump(),
                trimester=chapter.trimester if chapter else None,
                effectiveStatus=effective_status(
                    progression.status if progression else None,
                    lesson.planned_date,
                    today,
                ),
                progression=(
                    ProgressionOut.of(store, progression, today) if progression else None
                ),
            )
        )
    return out


@router.get("/chapter-elements/{chapter_id}", response_model=list[ChapterElementOut])
def get_chapter_elements(chapter_id: int, _scope: TeacherScope) -> list[ChapterElementOut]:
    return [ChapterElementOut.of(e) for e in curriculum_service.list_elements(store, chapter_id)]


@router.post("/lessons/plan", response_model=ProgressionOut)
def plan_lesson(body: PlanIn, scope: TeacherScope) -> ProgressionOut:
    row = progression_service.plan(store, scope, lesson_id=body.lessonId, class_id=body.classId)
    return ProgressionOut.of(store, row, datetime.now(UTC).date())


@router.post("/lessons/complete", response_model=ProgressionOut)
def complete_lesson(body: CompleteIn, scope: TeacherScope) -> ProgressionOut:
    row = progression_service.mark_completed(
        store,
        scope,
        lesson_id=body.lessonId,
        class_id=body.classId,
        actual_date=body.actualDate,
        actual_duration_minutes=body.actualDurationMinutes,
        notes=body.notes,
        session_type=body.sessionType,
        chapter_element_ids=body.chapterElementIds,
    )
    return ProgressionOut.of(store, row, datetime.now(UTC).date())
