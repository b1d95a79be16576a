"""Stored notifications.

Nothing here pushes anything: a notification is a row the recipient reads
through /api/notifications. Every writer runs inside the caller's
transaction so the notification lands or vanishes with the mutation that
caused it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from edutrack.core.errors import NotFoundError, PermissionDeniedError, ValidationError
from edutrack.core.metrics import NOTIFICATIONS_CREATED
from edutrack.models.notification import Notification
from edutrack.models.report import PRIORITIES
from edutrack.models.user import FOUNDER, INSPECTOR, SG, TEACHER, User
from edutrack.repos.store import Store
from edutrack.services.visibility import AccessScope

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
REMINDER_HORIZON_DAYS = 7
SG_NOTIFIERS = frozenset({TEACHER, INSPECTOR, FOUNDER})


@dataclass(frozen=True, slots=True)
class DelayCheckResult:
    delays: int
    reminders: int


def notify(
    store: Store,
    *,
    user_id: int,
    type: str,
    title: str,
    message: str,
    entity_type: str | None = None,
    entity_id: int | None = None,
    priority: str = "normal",
) -> Notification:
    row = store.notifications.add(
        user_id=user_id,
        type=type,
        title=title,
        message=message,
        entity_type=entity_type,
        entity_id=entity_id,
        priority=priority,
        created_at=datetime.now(UTC),
    )
    NOTIFICATIONS_CREATED.labels(type=type).inc()
    logger.debug("Notification queued  user=%s type=%s id=%s", user_id, type, row.id)
    return row


def list_for_user(store: Store, user_id: int, limit: int = DEFAULT_LIMIT) -> list[Notification]:
    return store.notifications.list_for_user(user_id, limit=limit)


def unread_count(store: Store, user_id: int) -> int:
    return store.notifications.unread_count(user_id)


def _own(store: Store, user_id: int, notification_id: int) -> Notification:
    row = store.notifications.get(notification_id)
    # Someone else's notification is reported exactly like a missing one.
    if row is None or row.user_id != user_id:
        raise NotFoundError("notification", notification_id)
    return row


def mark_read(store: Store, user_id: int, notification_id: int) -> Notification:
    with store.transaction():
        _own(store, user_id, notification_id)
        updated = store.notifications.mark_read(notification_id, datetime.now(UTC))
    if updated is None:
        raise NotFoundError("notification", notification_id)
    return updated


def mark_all_read(store: Store, user_id: int) -> int:
    with store.transaction():
        return store.notifications.mark_all_read(user_id, datetime.now(UTC))


def delete(store: Store, user_id: int, notification_id: int) -> None:
    with store.transaction():
        _own(store, user_id, notification_id)
        store.notifications.delete(notification_id)


def _teachers_to_check(store: Store, scope: AccessScope) -> list[int]:
    if scope.role == TEACHER:
        return [scope.user_id]
    if scope.unrestricted:
        return [u.id for u in store.users.list_by_role(TEACHER)]
    raise PermissionDeniedError("only teachers, founders and admins can check delays")


def check_delays(
    store: Store, scope: AccessScope, today: date | None = None
) -> DelayCheckResult:
    """Notify teachers about lessons that are late or coming up this week.

    For each of the teacher's assignments in the scope's year, every lesson
    of the class level and subject that is not completed or validated yields
    a "delay" notification (planned date passed) or a "reminder"
    notification (planned within the next seven days). A lesson is reported
    at most once per teacher and type.
    """
    today = today or datetime.now(UTC).date()
    horizon = today + timedelta(days=REMINDER_HORIZON_DAYS)
    delays = reminders = 0

    with store.transaction():
        for teacher_id in _teachers_to_check(store, scope):
            for assignment in store.assignments.teacher_assignments(
                teacher_id=teacher_id, academic_year=scope.academic_year
            ):
                school_class = store.curriculum.get_class(assignment.class_id)
                if school_class is None:
                    continue
                chapters = store.curriculum.list_chapters(
                    subject_id=assignment.subject_id, level_id=school_class.level_id
                )
                lessons = store.curriculum.list_lessons(
                    academic_year=scope.academic_year,
                    chapter_ids=[c.id for c in chapters],
                )
                for lesson in lessons:
                    if lesson.planned_date is None or not lesson.is_active:
                        continue
                    progression = store.progressions.get_by_key(
                        lesson.id, school_class.id, teacher_id
                    )
                    if progression is not None and progression.is_done:
                        continue
                    planned = lesson.planned_date.isoformat()
                    if lesson.planned_date < today:
                        if store.notifications.exists(teacher_id, "delay", "lesson", lesson.id):
                            continue
                        notify(
                            store,
                            user_id=teacher_id,
                            type="delay",
                            title="Lesson behind schedule",
                            message=(
                                f'Lesson "{lesson.title}" was planned for {planned} '
                                f"and has not been delivered yet."
                            ),
                            entity_type="lesson",
                            entity_id=lesson.id,
                            priority="high",
                        )
                        delays += 1
                    elif lesson.planned_date <= horizon:
                        if store.notifications.exists(
                            teacher_id, "reminder", "lesson", lesson.id
                        ):
                            continue
                        notify(
                            store,
                            user_id=teacher_id,
                            type="reminder",
                            title="Upcoming lesson",
                            message=f'Lesson "{lesson.title}" is planned for {planned}.',
                            entity_type="lesson",
                            entity_id=lesson.id,
                            priority="low",
                        )
                        reminders += 1

    logger.info(
        "Delay check  requester=%s delays=%d reminders=%d", scope.user_id, delays, reminders
    )
    return DelayCheckResult(delays=delays, reminders=reminders)


def notify_sg(
    store: Store, sender: User, *, title: str, message: str, priority: str = "normal"
) -> int:
    """Send one message to every SG user; returns how many were notified."""
    if sender.role not in SG_NOTIFIERS:
        raise PermissionDeniedError("only teachers, inspectors and founders can notify SG staff")
    if priority not in PRIORITIES:
        raise ValidationError(f"priority must be one of {', '.join(PRIORITIES)}")

    recipients = store.users.list_by_role(SG)
    with store.transaction():
        for sg in recipients:
            notify(
                store,
                user_id=sg.id,
                type=f"{sender.role}_notification",
                title=f"{sender.full_name} - {title}",
                message=f"[{sender.role.upper()}] {message}",
                entity_type="user",
                entity_id=sender.id,
                priority=priority,
            )
    logger.info("SG notified  sender=%s recipients=%d", sender.id, len(recipients))
    return len(recipients)
