from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

from edutrack.models.report import AnomalyReport, SgReport
from edutrack.repos.memory import InMemoryTable


class ReportRepo(Protocol):
    def get_anomaly(self, report_id: int) -> AnomalyReport | None: ...
    def list_anomalies(self, teacher_id: int | None = None) -> list[AnomalyReport]: ...
    def add_anomaly(self, **fields: Any) -> AnomalyReport: ...
    def update_anomaly(self, report_id: int, **changes: Any) -> AnomalyReport | None: ...
    def get_sg_report(self, report_id: int) -> SgReport | None: ...
    def list_sg_reports(self, sg_id: int | None = None) -> list[SgReport]: ...
    def add_sg_report(self, **fields: Any) -> SgReport: ...
    def update_sg_report(self, report_id: int, **changes: Any) -> SgReport | None: ...
    def delete_for_user(self, user_id: int) -> int: ...
    def anomalies_referencing(
        self,
        *,
        lesson_id: int | None = None,
        class_id: int | None = None,
        subject_id: int | None = None,
    ) -> int: ...
    def sg_reports_for_class(self, class_id: int) -> int: ...
    def detach_progressions(self, progression_ids: Iterable[int]) -> int: ...


class InMemoryReportRepo:
    def __init__(self) -> None:
        self._anomalies: InMemoryTable[AnomalyReport] = InMemoryTable(AnomalyReport)
        self._sg_reports: InMemoryTable[SgReport] = InMemoryTable(SgReport)

    def get_anomaly(self, report_id: int) -> AnomalyReport | None:
        return self._anomalies.get(report_id)

    def list_anomalies(self, teacher_id: int | None = None) -> list[AnomalyReport]:
        rows = self._anomalies.where(
            lambda r: teacher_id is None or r.teacher_id == teacher_id
        )
        return sorted(rows, key=lambda r: (r.created_at, r.id), reverse=True)

    def add_anomaly(self, **fields: Any) -> AnomalyReport:
        return self._anomalies.insert(**fields)

    def update_anomaly(self, report_id: int, **changes: Any) -> AnomalyReport | None:
        return self._anomalies.update(report_id, **changes)

    def get_sg_report(self, report_id: int) -> SgReport | None:
        return self._sg_reports.get(report_id)

    def list_sg_reports(self, sg_id: int | None = None) -> list[SgReport]:
        rows = self._sg_reports.where(lambda r: sg_id is None or r.sg_id == sg_id)
        return sorted(rows, key=lambda r: (r.created_at, r.id), reverse=True)

    def add_sg_report(self, **fields: Any) -> SgReport:
        return self._sg_reports.insert(**fields)

    def update_sg_report(self, report_id: int, **changes: Any) -> SgReport | None:
        return self._sg_reports.update(report_id, **changes)

    def delete_for_user(self, user_id: int) -> int:
        """Drop every report the user filed, reviewed or is the subject of."""
        return self._anomalies.delete_where(
            lambda r: r.teacher_id == user_id or r.reviewed_by == user_id
        ) + self._sg_reports.delete_where(
            lambda r: r.sg_id == user_id or r.teacher_id == user_id
        )

    def anomalies_referencing(
        self,
        *,
        lesson_id: int | None = None,
        class_id: int | None = None,
        subject_id: int | None = None,
    ) -> int:
        """Anomaly reports pointing at any of the given curriculum rows."""
        return len(
            self._anomalies.where(
                lambda r: (lesson_id is not None and r.lesson_id == lesson_id)
                or (class_id is not None and r.class_id == class_id)
                or (subject_id is not None and r.subject_id == subject_id)
            )
        )

    def sg_reports_for_class(self, class_id: int) -> int:
        return len(self._sg_reports.where(lambda r: r.class_id == class_id))

    def detach_progressions(self, progression_ids: Iterable[int]) -> int:
        ids = set(progression_ids)
        attached = self._sg_reports.where(lambda r: r.lesson_progression_id in ids)
        for row in attached:
            self._sg_reports.update(row.id, lesson_progression_id=None)
        return len(attached)
