"""PostgreSQL implementation of ReportRepo."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from sqlalchemy import or_

from edutrack.db.session import SqlSessions
from edutrack.db.tables import AnomalyReportRow, SgReportRow
from edutrack.models.report import AnomalyReport, SgReport
from edutrack.repos.pg_table import SqlTable


def _recipients(row: AnomalyReportRow) -> dict[str, Any]:
    return {"recipients": tuple(row.recipients or ())}


class PgReportRepo:
    """Satisfies the ReportRepo Protocol using PostgreSQL."""

    def __init__(self, sessions: SqlSessions) -> None:
        self._anomalies: SqlTable[AnomalyReport] = SqlTable(
            sessions, AnomalyReportRow, AnomalyReport, _recipients
        )
        self._sg_reports: SqlTable[SgReport] = SqlTable(sessions, SgReportRow, SgReport)

    def get_anomaly(self, report_id: int) -> AnomalyReport | None:
        return self._anomalies.get(report_id)

    def list_anomalies(self, teacher_id: int | None = None) -> list[AnomalyReport]:
        criteria = [] if teacher_id is None else [AnomalyReportRow.teacher_id == teacher_id]
        return self._anomalies.select(
            *criteria,
            order_by=[AnomalyReportRow.created_at.desc(), AnomalyReportRow.id.desc()],
        )

    def add_anomaly(self, **fields: Any) -> AnomalyReport:
        return self._anomalies.insert(**fields)

    def update_anomaly(self, report_id: int, **changes: Any) -> AnomalyReport | None:
        return self._anomalies.update(report_id, **changes)

    def get_sg_report(self, report_id: int) -> SgReport | None:
        return self._sg_reports.get(report_id)

    def list_sg_reports(self, sg_id: int | None = None) -> list[SgReport]:
        criteria = [] if sg_id is None else [SgReportRow.sg_id == sg_id]
        return self._sg_reports.select(
            *criteria, order_by=[SgReportRow.created_at.desc(), SgReportRow.id.desc()]
        )

    def add_sg_report(self, **fields: Any) -> SgReport:
        return self._sg_reports.insert(**fields)

    def update_sg_report(self, report_id: int, **changes: Any) -> SgReport | None:
        return self._sg_reports.update(report_id, **changes)

    def delete_for_user(self, user_id: int) -> int:
        """Drop every report the user filed, reviewed or is the subject of."""
        return self._anomalies.delete_where(
            or_(AnomalyReportRow.teacher_id == user_id, AnomalyReportRow.reviewed_by == user_id)
        ) + self._sg_reports.delete_where(
            or_(SgReportRow.sg_id == user_id, SgReportRow.teacher_id == user_id)
        )

    def anomalies_referencing(
        self,
        *,
        lesson_id: int | None = None,
        class_id: int | None = None,
        subject_id: int | None = None,
    ) -> int:
        refs = [
            column == value
            for column, value in (
                (AnomalyReportRow.lesson_id, lesson_id),
                (AnomalyReportRow.class_id, class_id),
                (AnomalyReportRow.subject_id, subject_id),
            )
            if value is not None
        ]
        return self._anomalies.count(or_(*refs)) if refs else 0

    def sg_reports_for_class(self, class_id: int) -> int:
        return self._sg_reports.count(SgReportRow.class_id == class_id)

    def detach_progressions(self, progression_ids: Iterable[int]) -> int:
        ids = list(progression_ids)
        if not ids:
            return 0
        return self._sg_reports.update_where(
            SgReportRow.lesson_progression_id.in_(ids), lesson_progression_id=None
        )
