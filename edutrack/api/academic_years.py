from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from edutrack.api.dependencies import require_role, require_user, selected_year
from edutrack.api.schemas import (
    AcademicYearCreateIn,
    AcademicYearOut,
    AcademicYearsOut,
    SetAcademicYearIn,
)
from edutrack.models.principal import Principal
from edutrack.models.user import ADMIN
from edutrack.repos.store import store
from edutrack.services import academic_years

logger = logging.getLogger(__name__)

router = APIRouter(tags=["academic-years"])

Admin = Annotated[Principal, Depends(require_role(ADMIN))]


@router.get("/api/academic-years", response_model=AcademicYearsOut)
def list_academic_years(
    principal: Annotated[Principal, Depends(require_user)],
    year: Annotated[str, Depends(selected_year)],
) -> AcademicYearsOut:
    """Year names for the selector, newest first, plus the stored rows.

    Admins also get the name the next year would take.
    """
    return AcademicYearsOut(
        current=year,
        years=academic_years.list_year_names(store),
        records=[AcademicYearOut.of(y) for y in store.curriculum.list_years()],
        nextYear=academic_years.next_year_name(store) if principal.role == ADMIN else None,
    )


@router.post(
    "/api/admin/academic-years",
    response_model=AcademicYearOut,
    status_code=status.HTTP_201_CREATED,
)
def create_academic_year(body: AcademicYearCreateIn, principal: Admin) -> AcademicYearOut:
    year = academic_years.create_year(
        store,
        actor_id=principal.user_id,
        name=body.name,
        copy_from=body.copyFrom,
        copy_classes=body.copyClasses,
        copy_inspector_assignments=body.copyInspectorAssignments,
        copy_sg_assignments=body.copySgAssignments,
    )
    return AcademicYearOut.of(year)


@router.post("/api/admin/set-academic-year", response_model=AcademicYearOut)
def set_academic_year(body: SetAcademicYearIn, principal: Admin) -> AcademicYearOut:
    year = academic_years.activate_year(store, actor_id=principal.user_id, name=body.academicYear)
    return AcademicYearOut.of(year)
