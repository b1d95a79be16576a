"""SQL-backed repositories, run against an in-memory SQLite database.

The same services drive these repos in production on PostgreSQL; SQLite
stores the array columns as JSON.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from edutrack.core.errors import NotFoundError
from edutrack.db.engine import Base
from edutrack.db.session import SqlSessions
from edutrack.models.curriculum import ChapterElement, Lesson, SchoolClass, Subject
from edutrack.models.principal import Principal
from edutrack.models.progression import COMPLETED, VALIDATED
from edutrack.models.user import ADMIN, INSPECTOR, SG, TEACHER, User
from edutrack.repos.pg_user_repo import PgUserRepo
from edutrack.repos.store import Store
from edutrack.services import progression_service, users_service
from edutrack.services.visibility import build_scope
from tests.conftest import YEAR, now, today


@pytest.fixture
def sql_store() -> Iterator[Store]:
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(engine)
    yield Store(SqlSessions(sessionmaker(engine, expire_on_commit=False)))
    engine.dispose()


def _user(store: Store, role: str, username: str) -> User:
    return store.users.add(
        username=username,
        password_hash="unusable",
        role=role,
        first_name="Test",
        last_name=username.title(),
        created_at=now(),
    )


@dataclass
class SqlSchool:
    math: Subject
    class_6a: SchoolClass
    element: ChapterElement
    lesson: Lesson
    teacher: User
    inspector: User
    admin: User


@pytest.fixture
def sql_school(sql_store: Store) -> SqlSchool:
    c = sql_store.curriculum
    c.add_year(name=YEAR, start_date=date(2024, 9, 1), end_date=date(2025, 6, 30), status="active")
    math = c.add_subject(name="Mathématiques", code="MATH", description="")
    sixth = c.add_level(name="6ème", code="6E", category="college")
    class_6a = c.add_class(name="6A", level_id=sixth.id, academic_year=YEAR)
    chapter = c.add_chapter(name="Nombres entiers", subject_id=math.id, level_id=sixth.id)
    element = c.add_element(chapter_id=chapter.id, title="Addition", order_index=1)
    lesson = c.add_lesson(
        title="Les nombres",
        chapter_id=chapter.id,
        planned_duration_minutes=55,
        academic_year=YEAR,
        created_at=now(),
        planned_date=today() - timedelta(days=3),
        order_index=1,
    )
    teacher = _user(sql_store, TEACHER, "teacher")
    inspector = _user(sql_store, INSPECTOR, "inspector")
    admin = _user(sql_store, ADMIN, "admin")
    sql_store.assignments.add_teacher(teacher.id, class_6a.id, math.id, YEAR)
    sql_store.assignments.add_inspector(inspector.id, math.id, YEAR)
    return SqlSchool(math, class_6a, element, lesson, teacher, inspector, admin)


def _scope(store: Store, user: User):
    return build_scope(store, Principal(user_id=user.id, role=user.role), YEAR)


def _complete(store: Store, school: SqlSchool):
    return progression_service.mark_completed(
        store,
        _scope(store, school.teacher),
        lesson_id=school.lesson.id,
        class_id=school.class_6a.id,
        actual_date=today(),
        actual_duration_minutes=50,
        chapter_element_ids=[school.element.id],
    )


def _sg_report(store: Store, school: SqlSchool, sg: User, progression_id: int | None):
    return store.reports.add_sg_report(
        sg_id=sg.id,
        teacher_id=school.teacher.id,
        class_id=school.class_6a.id,
        lesson_progression_id=progression_id,
        created_at=now(),
        updated_at=now(),
    )


# ---- store selection ----


def test_sessions_select_sql_repos(sql_store: Store) -> None:
    assert sql_store.is_sql
    assert isinstance(sql_store.users, PgUserRepo)
    assert not Store().is_sql


# ---- users ----


def test_users_keep_unique_usernames(sql_store: Store) -> None:
    first = _user(sql_store, TEACHER, "alice")
    with pytest.raises(ValueError, match="username already exists"):
        _user(sql_store, TEACHER, "alice")
    assert sql_store.users.get_by_username("alice") == first
    assert first.created_at.tzinfo is not None


def test_users_list_by_id_and_role(sql_store: Store) -> None:
    sg = _user(sql_store, SG, "sg")
    teacher = _user(sql_store, TEACHER, "teacher")
    assert [u.id for u in sql_store.users.list_all()] == [sg.id, teacher.id]
    assert sql_store.users.list_by_role(TEACHER) == [teacher]


# ---- progressions through the services ----


def test_complete_then_validate_persists_row(sql_store: Store, sql_school: SqlSchool) -> None:
    done = _complete(sql_store, sql_school)
    assert done.status == COMPLETED
    assert done.chapter_element_ids == frozenset({sql_school.element.id})

    validated = progression_service.validate(
        sql_store, _scope(sql_store, sql_school.inspector), done.id
    )
    assert validated.status == VALIDATED
    assert validated.validated_by == sql_school.inspector.id

    stored = sql_store.progressions.get_by_key(
        sql_school.lesson.id, sql_school.class_6a.id, sql_school.teacher.id
    )
    assert stored == validated
    assert sql_store.notifications.unread_count(sql_school.inspector.id) == 1
    assert sql_store.notifications.unread_count(sql_school.teacher.id) == 1


def test_duplicate_progression_key_is_rejected(sql_store: Store, sql_school: SqlSchool) -> None:
    row = _complete(sql_store, sql_school)
    with pytest.raises(ValueError):
        sql_store.progressions.add(
            lesson_id=row.lesson_id,
            class_id=row.class_id,
            teacher_id=row.teacher_id,
            created_at=now(),
            updated_at=now(),
        )


# ---- unit of work ----


def test_failed_transaction_leaves_no_rows(sql_store: Store) -> None:
    with pytest.raises(RuntimeError):
        with sql_store.transaction():
            _user(sql_store, TEACHER, "ghost")
            raise RuntimeError("boom")
    assert sql_store.users.get_by_username("ghost") is None


def test_create_user_with_unknown_class_rolls_back(
    sql_store: Store, sql_school: SqlSchool
) -> None:
    with pytest.raises(NotFoundError):
        users_service.create_user(
            sql_store,
            actor_id=sql_school.admin.id,
            academic_year=YEAR,
            username="newcomer",
            password="s3cret-pass",
            role=TEACHER,
            first_name="New",
            last_name="Comer",
            subject_id=sql_school.math.id,
            class_ids=[9999],
        )
    assert sql_store.users.get_by_username("newcomer") is None
    assert sql_store.notifications.list_audit() == []


def test_reset_empties_every_table(sql_store: Store, sql_school: SqlSchool) -> None:
    _complete(sql_store, sql_school)
    sql_store.reset()
    assert sql_store.users.list_all() == []
    assert sql_store.progressions.list_all() == []
    assert sql_store.curriculum.list_years() == []


# ---- reports and audit ----


def test_anomaly_recipients_and_references(sql_store: Store, sql_school: SqlSchool) -> None:
    report = sql_store.reports.add_anomaly(
        teacher_id=sql_school.teacher.id,
        type="content",
        title="Manuel manquant",
        description="Pas de manuel pour la 6A",
        recipients=("fondateur", "inspecteur"),
        class_id=sql_school.class_6a.id,
        created_at=now(),
        updated_at=now(),
    )
    assert sql_store.reports.get_anomaly(report.id).recipients == ("fondateur", "inspecteur")
    assert sql_store.reports.anomalies_referencing(class_id=sql_school.class_6a.id) == 1
    assert sql_store.reports.anomalies_referencing(lesson_id=sql_school.lesson.id) == 0
    assert sql_store.reports.anomalies_referencing() == 0


def test_deleting_teacher_cascades_their_rows(
    sql_store: Store, sql_school: SqlSchool
) -> None:
    progression = _complete(sql_store, sql_school)
    sg = _user(sql_store, SG, "sg")
    _sg_report(sql_store, sql_school, sg, progression.id)

    users_service.delete_user(
        sql_store, actor_id=sql_school.admin.id, user_id=sql_school.teacher.id
    )

    assert sql_store.users.get_by_id(sql_school.teacher.id) is None
    assert sql_store.progressions.list_for_teacher(sql_school.teacher.id) == []
    assert sql_store.reports.list_sg_reports() == []
    [entry] = sql_store.notifications.list_audit()
    assert entry.action == "delete_user"
    assert entry.details["progressions"] == 1


def test_detach_progressions_clears_links(sql_store: Store, sql_school: SqlSchool) -> None:
    progression = _complete(sql_store, sql_school)
    sg = _user(sql_store, SG, "sg")
    report = _sg_report(sql_store, sql_school, sg, progression.id)

    assert sql_store.reports.detach_progressions([progression.id]) == 1
    assert sql_store.reports.get_sg_report(report.id).lesson_progression_id is None
    assert sql_store.reports.detach_progressions([]) == 0
    assert sql_store.reports.sg_reports_for_class(sql_school.class_6a.id) == 1


def test_audit_pages_newest_first(sql_store: Store) -> None:
    base = datetime(2024, 10, 1, tzinfo=UTC)
    for i in range(3):
        sql_store.notifications.add_audit(
            action=f"step_{i}", created_at=base + timedelta(minutes=i), details={"i": i}
        )
    page = sql_store.notifications.list_audit(limit=2, offset=1)
    assert [a.action for a in page] == ["step_1", "step_0"]
    assert page[0].details == {"i": 1}
    assert page[0].created_at == base + timedelta(minutes=1)
