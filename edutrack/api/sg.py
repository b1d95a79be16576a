"""Surveillance staff (SG) views, limited to the cycles they are assigned."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from edutrack.api.dependencies import scope_for
from edutrack.api.schemas import ClassOut, MonthlyHoursOut, TeacherOut, TeacherStatisticsOut
from edutrack.models.user import SG
from edutrack.repos.store import store
from edutrack.services import reporting_service
from edutrack.services.visibility import AccessScope, visible_classes, visible_teachers

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sg"])

SgScope = Annotated[AccessScope, Depends(scope_for({SG}))]


@router.get("/api/sg/teachers", response_model=list[TeacherOut])
def get_teachers(scope: SgScope) -> list[TeacherOut]:
    return [TeacherOut.visible(store, scope, t) for t in visible_teachers(store, scope)]


@router.get("/api/sg/classes", response_model=list[ClassOut])
def get_classes(scope: SgScope) -> list[ClassOut]:
    return [ClassOut.of(store, c) for c in visible_classes(store, scope)]


@router.get("/api/sg/teacher-statistics", response_model=list[TeacherStatisticsOut])
def get_teacher_statistics(scope: SgScope) -> list[TeacherStatisticsOut]:
    return [
        TeacherStatisticsOut.of(s) for s in reporting_service.teacher_statistics(store, scope)
    ]


@router.get("/api/sg-reports/teacher-hours", response_model=list[MonthlyHoursOut])
def get_teacher_hours(
    scope: SgScope,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    year: Annotated[int | None, Query(ge=2000, le=2100)] = None,
) -> list[MonthlyHoursOut]:
    return [
        MonthlyHoursOut.of(m)
        for m in reporting_service.monthly_hours(store, scope, month=month, year=year)
    ]
