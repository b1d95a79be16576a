"""Founder dashboards: school-wide progressions, statistics and payroll."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends

from edutrack.api.dependencies import scope_for
from edutrack.api.schemas import (
    HourlyRateIn,
    LevelOut,
    ProgressionOut,
    StatsOut,
    SubjectOut,
    TeacherHoursOut,
    TeacherOut,
    TeacherStatisticsOut,
    UserOut,
)
from edutrack.models.user import FOUNDER
from edutrack.repos.store import store
from edutrack.services import progression_service, reporting_service, users_service
from edutrack.services.visibility import AccessScope, visible_progressions, visible_teachers

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/founder", tags=["founder"])

FounderScope = Annotated[AccessScope, Depends(scope_for({FOUNDER}))]


@router.get("/stats", response_model=StatsOut)
def get_stats(scope: FounderScope) -> StatsOut:
    return StatsOut.of(progression_service.compute_stats(store, scope))


@router.get("/progressions", response_model=list[ProgressionOut])
def get_progressions(scope: FounderScope) -> list[ProgressionOut]:
    today = datetime.now(UTC).date()
    return [ProgressionOut.of(store, p, today) for p in visible_progressions(store, scope)]


@router.get("/teachers", response_model=list[TeacherOut])
def get_teachers(scope: FounderScope) -> list[TeacherOut]:
    return [TeacherOut.visible(store, scope, t) for t in visible_teachers(store, scope)]


@router.get("/subjects", response_model=list[SubjectOut])
def get_subjects(_scope: FounderScope) -> list[SubjectOut]:
    return [SubjectOut.of(s) for s in store.curriculum.list_subjects()]


@router.get("/levels", response_model=list[LevelOut])
def get_levels(_scope: FounderScope) -> list[LevelOut]:
    return [LevelOut.of(lv) for lv in store.curriculum.list_levels()]


@router.get("/teacher-hours", response_model=list[TeacherHoursOut])
def get_teacher_hours(scope: FounderScope) -> list[TeacherHoursOut]:
    return [TeacherHoursOut.of(h) for h in reporting_service.teacher_hours(store, scope)]


@router.get("/teacher-statistics", response_model=list[TeacherStatisticsOut])
def get_teacher_statistics(scope: FounderScope) -> list[TeacherStatisticsOut]:
    return [
        TeacherStatisticsOut.of(s) for s in reporting_service.teacher_statistics(store, scope)
    ]


@router.put("/teacher-hourly-rate/{teacher_id}", response_model=UserOut)
def put_hourly_rate(teacher_id: int, body: HourlyRateIn, scope: FounderScope) -> UserOut:
    user = users_service.update_hourly_rate(
        store, actor_id=scope.user_id, teacher_id=teacher_id, hourly_rate=body.hourlyRate
    )
    logger.info("Hourly rate set teacher=%s rate=%s by=%s", teacher_id, body.hourlyRate, scope.user_id)
    return UserOut.of(user)
