from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from edutrack.api.dependencies import scope_for
from edutrack.api.schemas import ProgressionOut, StatsOut, TeacherOut
from edutrack.core.errors import PermissionDeniedError
from edutrack.models.user import INSPECTOR
from edutrack.repos.store import store
from edutrack.services import progression_service
from edutrack.services.visibility import (
    AccessScope,
    can_see_teacher,
    visible_progressions,
    visible_teachers,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/inspector", tags=["inspector"])

InspectorScope = Annotated[AccessScope, Depends(scope_for({INSPECTOR}))]


def _progressions(
    scope: AccessScope, *, teacher_id: int | None = None, class_id: int | None = None
) -> list[ProgressionOut]:
    if teacher_id is not None and not can_see_teacher(store, scope, teacher_id):
        logger.warning(
            "Inspector %s asked for teacher %s outside subjects %s",
            scope.user_id,
            teacher_id,
            sorted(scope.subject_ids),
        )
        raise PermissionDeniedError("this teacher does not teach one of your subjects")
    today = datetime.now(UTC).date()
    return [
        ProgressionOut.of(store, p, today)
        for p in visible_progressions(store, scope, teacher_id=teacher_id)
        if class_id is None or p.class_id == class_id
    ]


@router.get("/teachers", response_model=list[TeacherOut])
def get_teachers(scope: InspectorScope) -> list[TeacherOut]:
    return [TeacherOut.visible(store, scope, t) for t in visible_teachers(store, scope)]


@router.get("/progressions", response_model=list[ProgressionOut])
def get_progressions(scope: InspectorScope) -> list[ProgressionOut]:
    return _progressions(scope)


@router.get("/teacher/{teacher_id}/progressions", response_model=list[ProgressionOut])
def get_teacher_progressions(teacher_id: int, scope: InspectorScope) -> list[ProgressionOut]:
    return _progressions(scope, teacher_id=teacher_id)


@router.get(
    "/teacher/{teacher_id}/class/{class_id}/progressions",
    response_model=list[ProgressionOut],
)
def get_teacher_class_progressions(
    teacher_id: int, class_id: int, scope: InspectorScope
) -> list[ProgressionOut]:
    return _progressions(scope, teacher_id=teacher_id, class_id=class_id)


@router.post("/progressions/{progression_id}/validate", response_model=ProgressionOut)
def validate_progression(progression_id: int, scope: InspectorScope) -> ProgressionOut:
    row = progression_service.validate(store, scope, progression_id)
    return ProgressionOut.of(store, row, datetime.now(UTC).date())


@router.post("/progressions/{progression_id}/reopen", response_model=ProgressionOut)
def reopen_progression(progression_id: int, scope: InspectorScope) -> ProgressionOut:
    row = progression_service.reopen(store, scope, progression_id)
    return ProgressionOut.of(store, row, datetime.now(UTC).date())


@router.get("/stats", response_model=StatsOut)
def get_stats(scope: InspectorScope) -> StatsOut:
    return StatsOut.of(progression_service.compute_stats(store, scope))
