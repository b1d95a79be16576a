"""Admin maintenance of reference data.

Every mutation runs in one store transaction together with its audit-log
row. Updates and deletes look the row up first (404), and deletes refuse
rows that other rows still point at with a 400 naming what is in the way.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from typing import Any

from edutrack.core.errors import (
    ConflictError,
    NotFoundError,
    ReferencedEntityError,
    ValidationError,
)
from edutrack.models.curriculum import (
    CYCLES,
    Chapter,
    ChapterElement,
    Lesson,
    Level,
    SchoolClass,
    Subject,
)
from edutrack.models.notification import AuditLog
from edutrack.repos.store import Store

logger = logging.getLogger(__name__)


def _jsonable(value: Any) -> Any:
    if isinstance(value, date | datetime):
        return value.isoformat()
    if isinstance(value, set | frozenset):
        return sorted(value)
    if isinstance(value, tuple):
        return list(value)
    return value


def audit(
    store: Store,
    *,
    actor_id: int,
    action: str,
    entity_type: str,
    entity_id: int | None,
    details: dict[str, Any] | None = None,
) -> AuditLog:
    row = store.notifications.add_audit(
        user_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details={k: _jsonable(v) for k, v in (details or {}).items()},
        created_at=datetime.now(UTC),
    )
    logger.info(
        "Audit  actor=%s action=%s %s=%s", actor_id, action, entity_type, entity_id
    )
    return row


def list_audit_logs(store: Store, *, limit: int = 100, offset: int = 0) -> list[AuditLog]:
    return store.notifications.list_audit(limit=limit, offset=offset)


def _referenced(entity: str, name: str, usages: dict[str, int]) -> None:
    blocking = {k: n for k, n in usages.items() if n}
    if blocking:
        parts = ", ".join(f"{n} {kind}" for kind, n in blocking.items())
        raise ReferencedEntityError(
            f"{entity} {name!r} cannot be deleted: it is still used by {parts}; "
            f"delete those first"
        )


# ---------------------------------------------------------------------------
# Subjects
# ---------------------------------------------------------------------------


def create_subject(
    store: Store, *, actor_id: int, name: str, code: str, description: str = ""
) -> Subject:
    with store.transaction():
        try:
            subject = store.curriculum.add_subject(name=name, code=code, description=description)
        except ValueError:
            raise ConflictError(f"subject code {code!r} already exists") from None
        audit(
            store,
            actor_id=actor_id,
            action="create_subject",
            entity_type="subject",
            entity_id=subject.id,
            details={"name": name, "code": code},
        )
    return subject


def update_subject(
    store: Store, *, actor_id: int, subject_id: int, changes: dict[str, Any]
) -> Subject:
    with store.transaction():
        try:
            subject = store.curriculum.update_subject(subject_id, **changes)
        except ValueError:
            raise ConflictError(f"subject code {changes.get('code')!r} already exists") from None
        if subject is None:
            raise NotFoundError("subject", subject_id)
        audit(
            store,
            actor_id=actor_id,
            action="update_subject",
            entity_type="subject",
            entity_id=subject_id,
            details=changes,
        )
    return subject


def delete_subject(store: Store, *, actor_id: int, subject_id: int) -> Subject:
    with store.transaction():
        subject = store.curriculum.get_subject(subject_id)
        if subject is None:
            raise NotFoundError("subject", subject_id)
        _referenced(
            "subject",
            subject.name,
            {
                "chapter(s)": len(store.curriculum.list_chapters(subject_id=subject_id)),
                "teacher assignment(s)": len(
                    store.assignments.teacher_assignments(subject_id=subject_id)
                ),
                "inspector assignment(s)": len(
                    store.assignments.inspector_assignments(subject_id=subject_id)
                ),
                "anomaly report(s)": store.reports.anomalies_referencing(subject_id=subject_id),
            },
        )
        store.curriculum.delete_subject(subject_id)
        audit(
            store,
            actor_id=actor_id,
            action="delete_subject",
            entity_type="subject",
            entity_id=subject_id,
            details={"name": subject.name, "code": subject.code},
        )
    return subject


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------


def _check_category(category: str) -> None:
    if category not in CYCLES:
        raise ValidationError(f"category must be one of {', '.join(CYCLES)}")


def create_level(
    store: Store, *, actor_id: int, name: str, code: str, category: str
) -> Level:
    _check_category(category)
    with store.transaction():
        try:
            level = store.curriculum.add_level(name=name, code=code, category=category)
        except ValueError:
            raise ConflictError(f"level code {code!r} already exists") from None
        audit(
            store,
            actor_id=actor_id,
            action="create_level",
            entity_type="level",
            entity_id=level.id,
            details={"name": name, "code": code, "category": category},
        )
    return level


def update_level(
    store: Store, *, actor_id: int, level_id: int, changes: dict[str, Any]
) -> Level:
    if "category" in changes:
        _check_category(changes["category"])
    with store.transaction():
        try:
            level = store.curriculum.update_level(level_id, **changes)
        except ValueError:
            raise ConflictError(f"level code {changes.get('code')!r} already exists") from None
        if level is None:
            raise NotFoundError("level", level_id)
        audit(
            store,
            actor_id=actor_id,
            action="update_level",
            entity_type="level",
            entity_id=level_id,
            details=changes,
        )
    return level


def delete_level(store: Store, *, actor_id: int, level_id: int) -> Level:
    with store.transaction():
        level = store.curriculum.get_level(level_id)
        if level is None:
            raise NotFoundError("level", level_id)
        _referenced(
            "level",
            level.name,
            {
                "chapter(s)": len(store.curriculum.list_chapters(level_id=level_id)),
                "class(es)": sum(
                    1 for c in store.curriculum.list_classes() if c.level_id == level_id
                ),
            },
        )
        store.curriculum.delete_level(level_id)
        audit(
            store,
            actor_id=actor_id,
            action="delete_level",
            entity_type="level",
            entity_id=level_id,
            details={"name": level.name, "code": level.code, "category": level.category},
        )
    return level


# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------


def create_class(store: Store, *, actor_id: int, fields: dict[str, Any]) -> SchoolClass:
    with store.transaction():
        if store.curriculum.get_level(fields["level_id"]) is None:
            raise NotFoundError("level", fields["level_id"])
        try:
            school_class = store.curriculum.add_class(**fields)
        except ValueError as e:
            raise ConflictError(str(e)) from None
        audit(
            store,
            actor_id=actor_id,
            action="create_class",
            entity_type="class",
            entity_id=school_class.id,
            details={
                "name": school_class.name,
                "levelId": school_class.level_id,
                "academicYear": school_class.academic_year,
            },
        )
    return school_class


def update_class(
    store: Store, *, actor_id: int, class_id: int, changes: dict[str, Any]
) -> SchoolClass:
    with store.transaction():
        if store.curriculum.get_class(class_id) is None:
            raise NotFoundError("class", class_id)
        if "level_id" in changes and store.curriculum.get_level(changes["level_id"]) is None:
            raise NotFoundError("level", changes["level_id"])
        try:
            school_class = store.curriculum.update_class(class_id, **changes)
        except ValueError as e:
            raise ConflictError(str(e)) from None
        if school_class is None:
            raise NotFoundError("class", class_id)
        audit(
            store,
            actor_id=actor_id,
            action="update_class",
            entity_type="class",
            entity_id=class_id,
            details=changes,
        )
    return school_class


def delete_class(store: Store, *, actor_id: int, class_id: int) -> SchoolClass:
    with store.transaction():
        school_class = store.curriculum.get_class(class_id)
        if school_class is None:
            raise NotFoundError("class", class_id)
        _referenced(
            "class",
            school_class.name,
            {
                "teacher assignment(s)": len(
                    store.assignments.teacher_assignments(class_id=class_id)
                ),
                "progression(s)": len(store.progressions.list_for_class(class_id)),
                "anomaly report(s)": store.reports.anomalies_referencing(class_id=class_id),
                "sg report(s)": store.reports.sg_reports_for_class(class_id),
            },
        )
        store.curriculum.delete_class(class_id)
        audit(
            store,
            actor_id=actor_id,
            action="delete_class",
            entity_type="class",
            entity_id=class_id,
            details={"name": school_class.name, "academicYear": school_class.academic_year},
        )
    return school_class


# ---------------------------------------------------------------------------
# Chapters, elements and lessons
# ---------------------------------------------------------------------------


def list_chapters(store: Store) -> list[Chapter]:
    return store.curriculum.list_chapters()


def list_elements(store: Store, chapter_id: int) -> list[ChapterElement]:
    if store.curriculum.get_chapter(chapter_id) is None:
        raise NotFoundError("chapter", chapter_id)
    return store.curriculum.list_elements(chapter_id)


def create_element(store: Store, *, actor_id: int, fields: dict[str, Any]) -> ChapterElement:
    with store.transaction():
        if store.curriculum.get_chapter(fields["chapter_id"]) is None:
            raise NotFoundError("chapter", fields["chapter_id"])
        element = store.curriculum.add_element(**fields)
        audit(
            store,
            actor_id=actor_id,
            action="create_chapter_element",
            entity_type="chapter_element",
            entity_id=element.id,
            details={"title": element.title, "chapterId": element.chapter_id},
        )
    return element


def _resolve_chapter(
    store: Store,
    *,
    chapter_id: int | None,
    chapter_name: str | None,
    subject_id: int | None,
    level_id: int | None,
) -> tuple[Chapter, bool]:
    """Find the lesson's chapter, creating it by (name, subject, level) on demand."""
    if chapter_id is not None:
        chapter = store.curriculum.get_chapter(chapter_id)
        if chapter is None:
            raise NotFoundError("chapter", chapter_id)
        return chapter, False
    if not (chapter_name and subject_id is not None and level_id is not None):
        raise ValidationError(
            "a lesson needs either chapterId or chapterName with subjectId and levelId"
        )
    if store.curriculum.get_subject(subject_id) is None:
        raise NotFoundError("subject", subject_id)
    if store.curriculum.get_level(level_id) is None:
        raise NotFoundError("level", level_id)
    existing = store.curriculum.find_chapter(chapter_name, subject_id, level_id)
    if existing is not None:
        return existing, False
    return (
        store.curriculum.add_chapter(
            name=chapter_name, subject_id=subject_id, level_id=level_id
        ),
        True,
    )


def list_lessons(store: Store, academic_year: str | None = None) -> list[Lesson]:
    return store.curriculum.list_lessons(academic_year=academic_year)


def create_lesson(
    store: Store,
    *,
    actor_id: int,
    fields: dict[str, Any],
    chapter_id: int | None = None,
    chapter_name: str | None = None,
    subject_id: int | None = None,
    level_id: int | None = None,
) -> Lesson:
    with store.transaction():
        chapter, created = _resolve_chapter(
            store,
            chapter_id=chapter_id,
            chapter_name=chapter_name,
            subject_id=subject_id,
            level_id=level_id,
        )
        lesson = store.curriculum.add_lesson(
            chapter_id=chapter.id, created_at=datetime.now(UTC), **fields
        )
        if created:
            audit(
                store,
                actor_id=actor_id,
                action="create_chapter",
                entity_type="chapter",
                entity_id=chapter.id,
                details={"name": chapter.name},
            )
        audit(
            store,
            actor_id=actor_id,
            action="create_lesson",
            entity_type="lesson",
            entity_id=lesson.id,
            details={"title": lesson.title, "chapterId": chapter.id, "chapterName": chapter.name},
        )
    return lesson


def update_lesson(
    store: Store, *, actor_id: int, lesson_id: int, changes: dict[str, Any]
) -> Lesson:
    with store.transaction():
        if store.curriculum.get_lesson(lesson_id) is None:
            raise NotFoundError("lesson", lesson_id)
        if "chapter_id" in changes and store.curriculum.get_chapter(changes["chapter_id"]) is None:
            raise NotFoundError("chapter", changes["chapter_id"])
        lesson = store.curriculum.update_lesson(lesson_id, **changes)
        if lesson is None:
            raise NotFoundError("lesson", lesson_id)
        audit(
            store,
            actor_id=actor_id,
            action="update_lesson",
            entity_type="lesson",
            entity_id=lesson_id,
            details=changes,
        )
    return lesson


def delete_lesson(store: Store, *, actor_id: int, lesson_id: int) -> Lesson:
    with store.transaction():
        lesson = store.curriculum.get_lesson(lesson_id)
        if lesson is None:
            raise NotFoundError("lesson", lesson_id)
        _referenced(
            "lesson",
            lesson.title,
            {
                "progression(s)": len(store.progressions.list_for_lesson(lesson_id)),
                "anomaly report(s)": store.reports.anomalies_referencing(lesson_id=lesson_id),
            },
        )
        store.curriculum.delete_lesson(lesson_id)
        audit(
            store,
            actor_id=actor_id,
            action="delete_lesson",
            entity_type="lesson",
            entity_id=lesson_id,
            details={"title": lesson.title},
        )
    return lesson
