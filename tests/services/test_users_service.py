from __future__ import annotations

import pytest

from edutrack.core.errors import ConflictError, ValidationError
from edutrack.models.user import ADMIN, TEACHER
from edutrack.repos.store import store
from edutrack.services import auth_service, progression_service, users_service
from tests.conftest import YEAR, School, make_user, scope_of, today


def test_ensure_admin_seeds_once() -> None:
    user = users_service.ensure_admin(store, username="admin", password="s3cret-pw")
    assert user is not None
    assert user.role == ADMIN
    assert auth_service.verify_password("s3cret-pw", user.password_hash)

    assert users_service.ensure_admin(store, username="admin2", password="other-pw") is None
    assert len(store.users.list_by_role(ADMIN)) == 1


def test_ensure_admin_skips_when_any_admin_exists() -> None:
    make_user(ADMIN, "root")
    assert users_service.ensure_admin(store, username="admin", password="s3cret-pw") is None
    assert store.users.get_by_username("admin") is None


def test_register_trims_username_and_rejects_duplicates() -> None:
    user = users_service.register(
        store,
        username="  claire  ",
        password="long-enough",
        role=TEACHER,
        first_name="Claire",
        last_name="Dubois",
    )
    assert user.username == "claire"
    with pytest.raises(ConflictError):
        users_service.register(
            store,
            username="claire",
            password="long-enough",
            role=TEACHER,
            first_name="C",
            last_name="D",
        )


def test_register_refuses_privileged_roles() -> None:
    for role in ("founder", "admin"):
        with pytest.raises(ValidationError):
            users_service.register(
                store,
                username=f"x-{role}",
                password="long-enough",
                role=role,
                first_name="X",
                last_name="Y",
            )


def test_update_hashes_new_password(school: School) -> None:
    users_service.update_user(
        store,
        actor_id=school.admin.id,
        user_id=school.teacher.id,
        changes={"password": "brand-new-pw"},
    )
    stored = store.users.get_by_id(school.teacher.id)
    assert auth_service.verify_password("brand-new-pw", stored.password_hash)
    entry = store.notifications.list_audit()[0]
    assert entry.details == {"passwordChanged": True}


def test_delete_clears_validator_on_validated_rows(school: School) -> None:
    row = progression_service.mark_completed(
        store,
        scope_of(school.teacher),
        lesson_id=school.past_lesson.id,
        class_id=school.class_6a.id,
        actual_date=today(),
        actual_duration_minutes=50,
    )
    progression_service.validate(store, scope_of(school.inspector), row.id)

    users_service.delete_user(store, actor_id=school.admin.id, user_id=school.inspector.id)

    kept = store.progressions.get(row.id)
    assert kept.status == "validated"
    assert kept.validated_by is None
    remaining = store.assignments.inspector_assignments(academic_year=YEAR)
    assert [a.inspector_id for a in remaining] == [school.french_inspector.id]
