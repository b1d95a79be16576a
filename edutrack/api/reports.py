"""Anomaly reports filed by teachers and session reports filed by SG staff.

Role rules live in services/reports_service.py; the handlers only translate
bodies and responses.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from edutrack.api.dependencies import current_user, get_scope, require_user
from edutrack.api.schemas import (
    AnomalyReportIn,
    AnomalyReportOut,
    AnomalyReviewIn,
    SgReportIn,
    SgReportOut,
    SgReportUpdateIn,
    SgReportValidateIn,
    snake_fields,
)
from edutrack.models.principal import Principal
from edutrack.repos.store import store
from edutrack.services import reports_service
from edutrack.services.visibility import AccessScope

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reports"])

AnyUser = Annotated[Principal, Depends(require_user)]
Scope = Annotated[AccessScope, Depends(get_scope)]


@router.get("/api/anomaly-reports", response_model=list[AnomalyReportOut])
def list_anomaly_reports(principal: AnyUser) -> list[AnomalyReportOut]:
    rows = reports_service.list_anomalies(store, current_user(principal))
    return [AnomalyReportOut.of(store, r) for r in rows]


@router.post(
    "/api/anomaly-reports",
    response_model=AnomalyReportOut,
    status_code=status.HTTP_201_CREATED,
)
def create_anomaly_report(body: AnomalyReportIn, principal: AnyUser) -> AnomalyReportOut:
    fields = snake_fields(body)
    fields["recipients"] = tuple(dict.fromkeys(body.recipients))
    fields.setdefault("priority", body.priority)
    report = reports_service.file_anomaly(store, current_user(principal), fields)
    return AnomalyReportOut.of(store, report)


@router.put("/api/anomaly-reports/{report_id}", response_model=AnomalyReportOut)
def review_anomaly_report(
    report_id: int, body: AnomalyReviewIn, principal: AnyUser
) -> AnomalyReportOut:
    report = reports_service.review_anomaly(
        store,
        current_user(principal),
        report_id,
        status=body.status,
        review_notes=body.reviewNotes,
        priority=body.priority,
    )
    return AnomalyReportOut.of(store, report)


@router.get("/api/sg-reports", response_model=list[SgReportOut])
def list_sg_reports(principal: AnyUser) -> list[SgReportOut]:
    rows = reports_service.list_sg_reports(store, current_user(principal))
    return [SgReportOut.of(store, r) for r in rows]


@router.post("/api/sg-reports", response_model=SgReportOut, status_code=status.HTTP_201_CREATED)
def create_sg_report(body: SgReportIn, principal: AnyUser, scope: Scope) -> SgReportOut:
    report = reports_service.file_sg_report(
        store, scope, current_user(principal), snake_fields(body)
    )
    return SgReportOut.of(store, report)


@router.put("/api/sg-reports/{report_id}", response_model=SgReportOut)
def update_sg_report(
    report_id: int, body: SgReportUpdateIn, principal: AnyUser, scope: Scope
) -> SgReportOut:
    # Explicit nulls are ignored: every report column has a default.
    changes = {k: v for k, v in snake_fields(body).items() if v is not None}
    report = reports_service.update_sg_report(
        store, scope, current_user(principal), report_id, changes
    )
    return SgReportOut.of(store, report)


@router.put("/api/sg-reports/{report_id}/validate", response_model=SgReportOut)
def validate_sg_report(
    report_id: int, body: SgReportValidateIn, principal: AnyUser
) -> SgReportOut:
    report = reports_service.validate_sg_report(
        store,
        current_user(principal),
        report_id,
        session_validated=body.sessionValidated,
        validation_notes=body.validationNotes,
    )
    return SgReportOut.of(store, report)
