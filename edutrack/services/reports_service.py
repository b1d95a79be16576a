"""Anomaly reports (filed by teachers) and SG session reports."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from edutrack.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from edutrack.models.report import (
    ANOMALY_STATUSES,
    AnomalyReport,
    SgReport,
)
from edutrack.models.user import FOUNDER, INSPECTOR, SG, TEACHER, User
from edutrack.repos.store import Store
from edutrack.services import notification_service
from edutrack.services.visibility import AccessScope, can_see_teacher, class_cycle

logger = logging.getLogger(__name__)

ANOMALY_REVIEWERS = frozenset({INSPECTOR, FOUNDER, SG})
SG_REPORT_READERS = frozenset({INSPECTOR, FOUNDER})

# Recipient labels as teachers pick them -> role notified.
_RECIPIENT_ROLES = {"fondateur": FOUNDER, "sg": SG, "inspecteur": INSPECTOR}


# ---------------------------------------------------------------------------
# Anomaly reports
# ---------------------------------------------------------------------------


def list_anomalies(store: Store, user: User) -> list[AnomalyReport]:
    if user.role == TEACHER:
        return store.reports.list_anomalies(teacher_id=user.id)
    if user.role in ANOMALY_REVIEWERS:
        return store.reports.list_anomalies()
    raise PermissionDeniedError("anomaly reports are not available to your role")


def file_anomaly(store: Store, teacher: User, fields: dict[str, Any]) -> AnomalyReport:
    if teacher.role != TEACHER:
        raise PermissionDeniedError("only teachers file anomaly reports")
    for key, getter in (
        ("lesson_id", store.curriculum.get_lesson),
        ("class_id", store.curriculum.get_class),
        ("subject_id", store.curriculum.get_subject),
    ):
        if fields.get(key) is not None and getter(fields[key]) is None:
            raise NotFoundError(key.removesuffix("_id"), fields[key])

    now = datetime.now(UTC)
    with store.transaction():
        report = store.reports.add_anomaly(
            teacher_id=teacher.id, created_at=now, updated_at=now, **fields
        )
        roles = {_RECIPIENT_ROLES[r] for r in report.recipients}
        for role in sorted(roles):
            for recipient in store.users.list_by_role(role):
                notification_service.notify(
                    store,
                    user_id=recipient.id,
                    type="anomaly_report",
                    title=f"Anomaly reported: {report.title}",
                    message=f"{teacher.full_name} reported a {report.type} issue.",
                    entity_type="anomaly_report",
                    entity_id=report.id,
                    priority=report.priority,
                )
    logger.info("Anomaly filed  id=%s teacher=%s type=%s", report.id, teacher.id, report.type)
    return report


def review_anomaly(
    store: Store,
    reviewer: User,
    report_id: int,
    *,
    status: str | None = None,
    review_notes: str | None = None,
    priority: str | None = None,
) -> AnomalyReport:
    if reviewer.role not in ANOMALY_REVIEWERS:
        raise PermissionDeniedError("only inspectors, founders and SG staff review reports")
    if status is not None and status not in ANOMALY_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(ANOMALY_STATUSES)}")

    with store.transaction():
        report = store.reports.get_anomaly(report_id)
        if report is None:
            raise NotFoundError("anomaly report", report_id)
        now = datetime.now(UTC)
        changes: dict[str, Any] = {"reviewed_by": reviewer.id, "updated_at": now}
        if status is not None:
            changes["status"] = status
            changes["resolved_at"] = now if status == "resolved" else None
        if review_notes is not None:
            changes["review_notes"] = review_notes
        if priority is not None:
            changes["priority"] = priority
        updated = store.reports.update_anomaly(report_id, **changes)
        if updated is None:
            raise NotFoundError("anomaly report", report_id)
        if status is not None and status != report.status:
            notification_service.notify(
                store,
                user_id=report.teacher_id,
                type="anomaly_report_updated",
                title=f"Report {status.replace('_', ' ')}",
                message=f'Your report "{report.title}" is now {status.replace("_", " ")}.',
                entity_type="anomaly_report",
                entity_id=report_id,
            )
    logger.info("Anomaly reviewed  id=%s reviewer=%s status=%s", report_id, reviewer.id, updated.status)
    return updated


# ---------------------------------------------------------------------------
# SG reports
# ---------------------------------------------------------------------------


def list_sg_reports(store: Store, user: User) -> list[SgReport]:
    if user.role == SG:
        return store.reports.list_sg_reports(sg_id=user.id)
    if user.role in SG_REPORT_READERS:
        return store.reports.list_sg_reports()
    raise PermissionDeniedError("SG reports are not available to your role")


def _check_sg_target(store: Store, scope: AccessScope, teacher_id: int, class_id: int) -> None:
    teacher = store.users.get_by_id(teacher_id)
    if teacher is None or teacher.role != TEACHER:
        raise NotFoundError("teacher", teacher_id)
    school_class = store.curriculum.get_class(class_id)
    if school_class is None:
        raise NotFoundError("class", class_id)
    if class_cycle(store, school_class) not in scope.cycles or not can_see_teacher(
        store, scope, teacher_id
    ):
        logger.warning(
            "SG report refused: sg=%s teacher=%s class=%s outside cycles=%s",
            scope.user_id,
            teacher_id,
            class_id,
            sorted(scope.cycles),
        )
        raise PermissionDeniedError("this teacher or class is outside your cycles")


def file_sg_report(
    store: Store, scope: AccessScope, sg: User, fields: dict[str, Any]
) -> SgReport:
    if sg.role != SG:
        raise PermissionDeniedError("only SG staff file session reports")
    with store.transaction():
        _check_sg_target(store, scope, fields["teacher_id"], fields["class_id"])
        progression_id = fields.get("lesson_progression_id")
        if progression_id is not None and store.progressions.get(progression_id) is None:
            raise NotFoundError("progression", progression_id)
        now = datetime.now(UTC)
        report = store.reports.add_sg_report(
            sg_id=sg.id, created_at=now, updated_at=now, **fields
        )
        for founder in store.users.list_by_role(FOUNDER):
            notification_service.notify(
                store,
                user_id=founder.id,
                type="sg_report_submitted",
                title="New SG report submitted",
                message=f"{sg.full_name} submitted a session report for validation.",
                entity_type="sg_report",
                entity_id=report.id,
            )
    logger.info("SG report filed  id=%s sg=%s teacher=%s", report.id, sg.id, report.teacher_id)
    return report


def update_sg_report(
    store: Store, scope: AccessScope, sg: User, report_id: int, changes: dict[str, Any]
) -> SgReport:
    if sg.role != SG:
        raise PermissionDeniedError("only SG staff edit session reports")
    with store.transaction():
        report = store.reports.get_sg_report(report_id)
        if report is None:
            raise NotFoundError("sg report", report_id)
        if report.sg_id != sg.id:
            raise PermissionDeniedError("you can only edit your own reports")
        if "teacher_id" in changes or "class_id" in changes:
            _check_sg_target(
                store,
                scope,
                changes.get("teacher_id", report.teacher_id),
                changes.get("class_id", report.class_id),
            )
        updated = store.reports.update_sg_report(
            report_id, updated_at=datetime.now(UTC), **changes
        )
        if updated is None:
            raise NotFoundError("sg report", report_id)
    return updated


def validate_sg_report(
    store: Store,
    founder: User,
    report_id: int,
    *,
    session_validated: bool,
    validation_notes: str | None = None,
) -> SgReport:
    if founder.role != FOUNDER:
        raise PermissionDeniedError("only founders validate SG reports")
    with store.transaction():
        report = store.reports.get_sg_report(report_id)
        if report is None:
            raise NotFoundError("sg report", report_id)
        updated = store.reports.update_sg_report(
            report_id,
            session_validated=session_validated,
            validation_notes=validation_notes,
            updated_at=datetime.now(UTC),
        )
        if updated is None:
            raise NotFoundError("sg report", report_id)
        if session_validated:
            title, message = "Report validated", "Your session report was validated by the founder."
        else:
            title = "Report rejected"
            message = (
                "Your session report was rejected. Reason: "
                f"{validation_notes or 'none given'}"
            )
        notification_service.notify(
            store,
            user_id=report.sg_id,
            type="sg_report_validated",
            title=title,
            message=message,
            entity_type="sg_report",
            entity_id=report_id,
        )
    logger.info("SG report %s  id=%s founder=%s", title.lower(), report_id, founder.id)
    return updated
