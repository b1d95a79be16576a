"""Admin CRUD over users and reference data.

Every mutation writes an audit-log row in the same transaction (see
services/curriculum_service.audit). Deletes answer 404 for unknown ids and
a descriptive 400 while other rows still reference the entity.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from edutrack.api.dependencies import require_role, selected_year
from edutrack.api.schemas import (
    AuditLogOut,
    ChapterElementIn,
    ChapterElementOut,
    ChapterOut,
    ClassIn,
    ClassOut,
    ClassUpdateIn,
    LessonIn,
    LessonOut,
    LessonUpdateIn,
    LevelIn,
    LevelOut,
    LevelUpdateIn,
    MessageOut,
    SubjectIn,
    SubjectOut,
    SubjectUpdateIn,
    UserCreateIn,
    UserOut,
    UserUpdateIn,
    snake_fields,
)
from edutrack.core.config import is_academic_year_name
from edutrack.core.errors import ValidationError
from edutrack.models.principal import Principal
from edutrack.models.user import ADMIN
from edutrack.repos.store import store
from edutrack.services import curriculum_service, users_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

Admin = Annotated[Principal, Depends(require_role(ADMIN))]
Year = Annotated[str, Depends(selected_year)]


def _year_filter(academic_year: str | None) -> str | None:
    if academic_year is not None and not is_academic_year_name(academic_year):
        raise ValidationError(f"invalid academic year {academic_year!r}")
    return academic_year


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=list[UserOut])
def admin_list_users(principal: Admin) -> list[UserOut]:
    logger.info("Admin user list requested by user=%s", principal.user_id)
    return [UserOut.of(u) for u in users_service.list_users(store)]


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def admin_create_user(body: UserCreateIn, principal: Admin, year: Year) -> UserOut:
    user = users_service.create_user(
        store,
        actor_id=principal.user_id,
        academic_year=year,
        username=body.username,
        password=body.password,
        role=body.role,
        first_name=body.firstName,
        last_name=body.lastName,
        email=body.email,
        hourly_rate=body.hourlyRate,
        subject_id=body.subjectId,
        class_ids=body.classIds,
        cycle=body.cycle,
    )
    return UserOut.of(user)


@router.put("/users/{user_id}", response_model=UserOut)
def admin_update_user(user_id: int, body: UserUpdateIn, principal: Admin) -> UserOut:
    user = users_service.update_user(
        store, actor_id=principal.user_id, user_id=user_id, changes=snake_fields(body)
    )
    return UserOut.of(user)


@router.delete("/users/{user_id}", response_model=MessageOut)
def admin_delete_user(user_id: int, principal: Admin) -> MessageOut:
    user = users_service.delete_user(store, actor_id=principal.user_id, user_id=user_id)
    return MessageOut(message=f"user {user.username} deleted")


# ---------------------------------------------------------------------------
# Subjects
# ---------------------------------------------------------------------------


@router.get("/subjects", response_model=list[SubjectOut])
def admin_list_subjects(_principal: Admin) -> list[SubjectOut]:
    return [SubjectOut.of(s) for s in store.curriculum.list_subjects()]


@router.post("/subjects", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def admin_create_subject(body: SubjectIn, principal: Admin) -> SubjectOut:
    subject = curriculum_service.create_subject(
        store,
        actor_id=principal.user_id,
        name=body.name,
        code=body.code,
        description=body.description,
    )
    return SubjectOut.of(subject)


@router.put("/subjects/{subject_id}", response_model=SubjectOut)
def admin_update_subject(subject_id: int, body: SubjectUpdateIn, principal: Admin) -> SubjectOut:
    subject = curriculum_service.update_subject(
        store, actor_id=principal.user_id, subject_id=subject_id, changes=snake_fields(body)
    )
    return SubjectOut.of(subject)


@router.delete("/subjects/{subject_id}", response_model=MessageOut)
def admin_delete_subject(subject_id: int, principal: Admin) -> MessageOut:
    subject = curriculum_service.delete_subject(
        store, actor_id=principal.user_id, subject_id=subject_id
    )
    return MessageOut(message=f"subject {subject.name} deleted")


# ---------------------------------------------------------------------------
# Levels
# ---------------------------------------------------------------------------


@router.get("/levels", response_model=list[LevelOut])
def admin_list_levels(_principal: Admin) -> list[LevelOut]:
    return [LevelOut.of(lv) for lv in store.curriculum.list_levels()]


@router.post("/levels", response_model=LevelOut, status_code=status.HTTP_201_CREATED)
def admin_create_level(body: LevelIn, principal: Admin) -> LevelOut:
    level = curriculum_service.create_level(
        store,
        actor_id=principal.user_id,
        name=body.name,
        code=body.code,
        category=body.category,
    )
    return LevelOut.of(level)


@router.put("/levels/{level_id}", response_model=LevelOut)
def admin_update_level(level_id: int, body: LevelUpdateIn, principal: Admin) -> LevelOut:
    level = curriculum_service.update_level(
        store, actor_id=principal.user_id, level_id=level_id, changes=snake_fields(body)
    )
    return LevelOut.of(level)


@router.delete("/levels/{level_id}", response_model=MessageOut)
def admin_delete_level(level_id: int, principal: Admin) -> MessageOut:
    level = curriculum_service.delete_level(store, actor_id=principal.user_id, level_id=level_id)
    return MessageOut(message=f"level {level.name} deleted")


# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------


@router.get("/classes", response_model=list[ClassOut])
def admin_list_classes(
    _principal: Admin,
    academic_year: Annotated[str | None, Query(alias="academicYear")] = None,
) -> list[ClassOut]:
    rows = store.curriculum.list_classes(academic_year=_year_filter(academic_year))
    return [ClassOut.of(store, c) for c in rows]


@router.post("/classes", response_model=ClassOut, status_code=status.HTTP_201_CREATED)
def admin_create_class(body: ClassIn, principal: Admin, year: Year) -> ClassOut:
    fields = snake_fields(body)
    fields["academic_year"] = _year_filter(body.academicYear) or year
    school_class = curriculum_service.create_class(
        store, actor_id=principal.user_id, fields=fields
    )
    return ClassOut.of(store, school_class)


@router.put("/classes/{class_id}", response_model=ClassOut)
def admin_update_class(class_id: int, body: ClassUpdateIn, principal: Admin) -> ClassOut:
    school_class = curriculum_service.update_class(
        store, actor_id=principal.user_id, class_id=class_id, changes=snake_fields(body)
    )
    return ClassOut.of(store, school_class)


@router.delete("/classes/{class_id}", response_model=MessageOut)
def admin_delete_class(class_id: int, principal: Admin) -> MessageOut:
    school_class = curriculum_service.delete_class(
        store, actor_id=principal.user_id, class_id=class_id
    )
    return MessageOut(message=f"class {school_class.name} deleted")


# ---------------------------------------------------------------------------
# Chapters, elements and lessons
# ---------------------------------------------------------------------------


@router.get("/chapters", response_model=list[ChapterOut])
def admin_list_chapters(_principal: Admin) -> list[ChapterOut]:
    return [ChapterOut.of(c) for c in curriculum_service.list_chapters(store)]


@router.post(
    "/chapter-elements",
    response_model=ChapterElementOut,
    status_code=status.HTTP_201_CREATED,
)
def admin_create_chapter_element(body: ChapterElementIn, principal: Admin) -> ChapterElementOut:
    element = curriculum_service.create_element(
        store, actor_id=principal.user_id, fields=snake_fields(body)
    )
    return ChapterElementOut.of(element)


@router.get("/lessons", response_model=list[LessonOut])
def admin_list_lessons(
    _principal: Admin,
    academic_year: Annotated[str | None, Query(alias="academicYear")] = None,
) -> list[LessonOut]:
    rows = curriculum_service.list_lessons(store, _year_filter(academic_year))
    return [LessonOut.of(store, lesson) for lesson in rows]


@router.post("/lessons", response_model=LessonOut, status_code=status.HTTP_201_CREATED)
def admin_create_lesson(body: LessonIn, principal: Admin, year: Year) -> LessonOut:
    fields = snake_fields(
        body, exclude={"chapterId", "chapterName", "subjectId", "levelId", "academicYear"}
    )
    # Defaults count even when the client left them out.
    fields.setdefault("planned_duration_minutes", body.plannedDurationMinutes)
    fields["academic_year"] = _year_filter(body.academicYear) or year
    lesson = curriculum_service.create_lesson(
        store,
        actor_id=principal.user_id,
        fields=fields,
        chapter_id=body.chapterId,
        chapter_name=body.chapterName,
        subject_id=body.subjectId,
        level_id=body.levelId,
    )
    return LessonOut.of(store, lesson)


@router.put("/lessons/{lesson_id}", response_model=LessonOut)
def admin_update_lesson(lesson_id: int, body: LessonUpdateIn, principal: Admin) -> LessonOut:
    lesson = curriculum_service.update_lesson(
        store, actor_id=principal.user_id, lesson_id=lesson_id, changes=snake_fields(body)
    )
    return LessonOut.of(store, lesson)


@router.delete("/lessons/{lesson_id}", response_model=MessageOut)
def admin_delete_lesson(lesson_id: int, principal: Admin) -> MessageOut:
    lesson = curriculum_service.delete_lesson(
        store, actor_id=principal.user_id, lesson_id=lesson_id
    )
    return MessageOut(message=f"lesson {lesson.title} deleted")


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------


@router.get("/logs", response_model=list[AuditLogOut])
def admin_list_logs(
    _principal: Admin,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[AuditLogOut]:
    rows = curriculum_service.list_audit_logs(store, limit=limit, offset=offset)
    return [AuditLogOut.of(a) for a in rows]
