from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from edutrack.main import app
from edutrack.models.curriculum import Chapter, ChapterElement, Lesson, Level, SchoolClass, Subject
from edutrack.models.principal import Principal
from edutrack.models.user import ADMIN, FOUNDER, INSPECTOR, SG, TEACHER, User
from edutrack.repos.store import store
from edutrack.services import auth_service, token_service
from edutrack.services.token_blacklist import token_blacklist
from edutrack.services.visibility import AccessScope, build_scope

# Ensure repo root is on sys.path so `import edutrack` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

YEAR = "2024-2025"
NEXT_YEAR = "2025-2026"


@pytest.fixture(autouse=True)
def reset_store() -> None:
    """Fresh in-memory data with YEAR marked active."""
    store.reset()
    store.curriculum.add_year(
        name=YEAR, start_date=date(2024, 9, 1), end_date=date(2025, 6, 30), status="active"
    )


@pytest.fixture(autouse=True)
def reset_token_blacklist() -> None:
    """Clear token blacklist between tests."""
    if hasattr(token_blacklist, "_revoked"):
        token_blacklist._revoked.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(user_id: int | str, role: str = TEACHER, ttl_minutes: int | None = None) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=user_id, role=role, ttl_minutes=ttl_minutes)


def auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(user.id, user.role)}"}


def today() -> date:
    return datetime.now(UTC).date()


def now() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------


def make_user(
    role: str,
    username: str | None = None,
    *,
    password: str | None = None,
    first_name: str = "Test",
    last_name: str | None = None,
    hourly_rate: float = 0.0,
) -> User:
    """Insert a user directly. Only hash a real password when a test logs in."""
    username = username or f"{role}-{len(store.users.list_all()) + 1}"
    return store.users.add(
        username=username,
        password_hash=auth_service.hash_password(password) if password else "unusable",
        role=role,
        first_name=first_name,
        last_name=last_name or username.title(),
        created_at=datetime.now(UTC),
        hourly_rate=hourly_rate,
    )


def scope_of(user: User, academic_year: str = YEAR) -> AccessScope:
    return build_scope(store, Principal(user_id=user.id, role=user.role), academic_year)


@dataclass
class School:
    math: Subject
    french: Subject
    sixth: Level  # college
    cp: Level  # primaire
    class_6a: SchoolClass
    class_6b: SchoolClass
    class_cp: SchoolClass
    chapter: Chapter
    french_chapter: Chapter
    element: ChapterElement
    past_lesson: Lesson  # planned three days ago
    soon_lesson: Lesson  # planned in three days
    later_lesson: Lesson  # planned in a month
    french_lesson: Lesson
    teacher: User  # math in 6A
    other_teacher: User  # french in CP
    inspector: User  # math
    french_inspector: User
    sg_college: User
    sg_primaire: User
    founder: User
    admin: User


def _lesson(title: str, chapter: Chapter, planned: date | None, order: int) -> Lesson:
    return store.curriculum.add_lesson(
        title=title,
        chapter_id=chapter.id,
        planned_duration_minutes=55,
        academic_year=YEAR,
        created_at=datetime.now(UTC),
        planned_date=planned,
        order_index=order,
    )


@pytest.fixture
def school() -> School:
    c = store.curriculum
    math = c.add_subject(name="Mathématiques", code="MATH", description="")
    french = c.add_subject(name="Français", code="FR", description="")
    sixth = c.add_level(name="6ème", code="6E", category="college")
    cp = c.add_level(name="CP", code="CP", category="primaire")
    class_6a = c.add_class(name="6A", level_id=sixth.id, academic_year=YEAR)
    class_6b = c.add_class(name="6B", level_id=sixth.id, academic_year=YEAR)
    class_cp = c.add_class(name="CP1", level_id=cp.id, academic_year=YEAR)

    chapter = c.add_chapter(
        name="Nombres entiers", subject_id=math.id, level_id=sixth.id, order_index=1, trimester=1
    )
    french_chapter = c.add_chapter(
        name="Lecture", subject_id=french.id, level_id=cp.id, order_index=1, trimester=2
    )
    element = c.add_element(chapter_id=chapter.id, title="Addition", order_index=1)

    now = today()
    past_lesson = _lesson("Les nombres", chapter, now - timedelta(days=3), 1)
    soon_lesson = _lesson("Les fractions", chapter, now + timedelta(days=3), 2)
    later_lesson = _lesson("Les décimaux", chapter, now + timedelta(days=30), 3)
    french_lesson = _lesson("Les voyelles", french_chapter, now + timedelta(days=30), 1)

    teacher = make_user(TEACHER, "teacher", first_name="Alice", last_name="Martin", hourly_rate=20.0)
    other_teacher = make_user(TEACHER, "teacher2", first_name="Bruno", last_name="Petit")
    inspector = make_user(INSPECTOR, "inspector")
    french_inspector = make_user(INSPECTOR, "inspector-fr")
    sg_college = make_user(SG, "sg-college")
    sg_primaire = make_user(SG, "sg-primaire")
    founder = make_user(FOUNDER, "founder")
    admin = make_user(ADMIN, "admin")

    a = store.assignments
    a.add_teacher(teacher.id, class_6a.id, math.id, YEAR)
    a.add_teacher(other_teacher.id, class_cp.id, french.id, YEAR)
    a.add_inspector(inspector.id, math.id, YEAR)
    a.add_inspector(french_inspector.id, french.id, YEAR)
    a.add_sg(sg_college.id, "college", YEAR)
    a.add_sg(sg_primaire.id, "primaire", YEAR)

    return School(
        math=math,
        french=french,
        sixth=sixth,
        cp=cp,
        class_6a=class_6a,
        class_6b=class_6b,
        class_cp=class_cp,
        chapter=chapter,
        french_chapter=french_chapter,
        element=element,
        past_lesson=past_lesson,
        soon_lesson=soon_lesson,
        later_lesson=later_lesson,
        french_lesson=french_lesson,
        teacher=teacher,
        other_teacher=other_teacher,
        inspector=inspector,
        french_inspector=french_inspector,
        sg_college=sg_college,
        sg_primaire=sg_primaire,
        founder=founder,
        admin=admin,
    )


def complete(client: TestClient, school: School, lesson: Lesson | None = None, **extra) -> dict:
    """Mark a lesson completed in 6A through the API; returns the JSON body."""
    body = {
        "lessonId": (lesson or school.past_lesson).id,
        "classId": school.class_6a.id,
        "actualDate": today().isoformat(),
        "actualDurationMinutes": 50,
        **extra,
    }
    resp = client.post("/api/teacher/lessons/complete", json=body, headers=auth(school.teacher))
    assert resp.status_code == 200, resp.text
    return resp.json()
