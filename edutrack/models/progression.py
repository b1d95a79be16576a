from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

PLANNED = "planned"
COMPLETED = "completed"
VALIDATED = "validated"
# Never stored: derived by effective_status().
DELAYED = "delayed"

DONE_STATUSES = frozenset({COMPLETED, VALIDATED})

SESSION_TYPES = ("lesson", "exercises", "control", "revision")
CONTROL_SESSION = "control"


@dataclass(frozen=True, slots=True)
class LessonProgression:
    """Delivery state of one lesson, for one class, by one teacher.

    (lesson_id, class_id, teacher_id) is unique; the repo enforces it.
    """

    id: int
    lesson_id: int
    class_id: int
    teacher_id: int
    created_at: datetime
    updated_at: datetime
    status: str = PLANNED  # planned|completed|validated
    actual_date: date | None = None
    actual_duration_minutes: int | None = None
    notes: str | None = None
    session_type: str = "lesson"
    chapter_element_ids: frozenset[int] = frozenset()
    validated_by: int | None = None
    validated_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.lesson_id, self.class_id, self.teacher_id)

    @property
    def is_done(self) -> bool:
        return self.status in DONE_STATUSES


def effective_status(status: str | None, planned_date: date | None, today: date) -> str:
    """Status as shown to every role, with "delayed" derived.

    A lesson with no progression row at all (status None) is treated as
    planned.
    """
    current = status or PLANNED
    if current == PLANNED and planned_date is not None and planned_date < today:
        return DELAYED
    return current
