from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

ANOMALY_TYPES = ("content", "hours", "schedule", "incident")
ANOMALY_STATUSES = ("open", "in_review", "resolved", "rejected")
ANOMALY_RECIPIENTS = ("fondateur", "sg", "inspecteur")
PRIORITIES = ("low", "normal", "high", "urgent")


@dataclass(frozen=True, slots=True)
class AnomalyReport:
    """Problem reported by a teacher; only reviewers change its status."""

    id: int
    teacher_id: int
    type: str
    title: str
    description: str
    recipients: tuple[str, ...]
    created_at: datetime
    updated_at: datetime
    lesson_id: int | None = None
    class_id: int | None = None
    subject_id: int | None = None
    status: str = "open"
    priority: str = "normal"
    reviewed_by: int | None = None
    review_notes: str | None = None
    resolved_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class SgReport:
    """Session observation filed by surveillance staff about a teacher."""

    id: int
    sg_id: int
    teacher_id: int
    class_id: int
    created_at: datetime
    updated_at: datetime
    lesson_progression_id: int | None = None
    schedule_validated: bool = False
    actual_start_time: str | None = None  # HH:MM
    actual_end_time: str | None = None
    teacher_present: bool = True
    teacher_late_minutes: int = 0
    teacher_rating: int | None = None  # 1-5
    teacher_appreciation: str | None = None
    incidents: str | None = None
    observations: str | None = None
    students_present: int | None = None
    students_total: int | None = None
    session_validated: bool = False
    validation_notes: str | None = None
