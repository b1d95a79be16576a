from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from edutrack.core.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from edutrack.models.curriculum import CYCLES
from edutrack.models.user import (
    ADMIN,
    INSPECTOR,
    ROLES,
    SELF_REGISTER_ROLES,
    SG,
    TEACHER,
    User,
)
from edutrack.repos.store import Store
from edutrack.services import auth_service
from edutrack.services.curriculum_service import audit

logger = logging.getLogger(__name__)


def list_users(store: Store) -> list[User]:
    return store.users.list_all()


def get_user(store: Store, user_id: int) -> User:
    user = store.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("user", user_id)
    return user


def list_sg_users(store: Store) -> list[User]:
    return store.users.list_by_role(SG)


def _add_user(store: Store, *, password: str, **fields: Any) -> User:
    username = fields["username"].strip()
    if not username:
        raise ValidationError("username must be non-empty")
    try:
        return store.users.add(
            password_hash=auth_service.hash_password(password),
            created_at=datetime.now(UTC),
            **{**fields, "username": username},
        )
    except ValueError as e:
        logger.warning("Rejected duplicate user username=%s: %s", username, e)
        raise ConflictError(str(e)) from None


def register(
    store: Store,
    *,
    username: str,
    password: str,
    role: str,
    first_name: str,
    last_name: str,
    email: str | None = None,
) -> User:
    """Public sign-up; founders and admins are only created by an admin."""
    if role not in SELF_REGISTER_ROLES:
        raise ValidationError(
            f"role must be one of {', '.join(sorted(SELF_REGISTER_ROLES))}"
        )
    with store.transaction():
        user = _add_user(
            store,
            password=password,
            username=username,
            role=role,
            first_name=first_name,
            last_name=last_name,
            email=email,
        )
    logger.info("Registered user id=%d username=%s role=%s", user.id, user.username, role)
    return user


def create_user(
    store: Store,
    *,
    actor_id: int,
    academic_year: str,
    username: str,
    password: str,
    role: str,
    first_name: str,
    last_name: str,
    email: str | None = None,
    hourly_rate: float = 0.0,
    subject_id: int | None = None,
    class_ids: list[int] | None = None,
    cycle: str | None = None,
) -> User:
    """Create a user and the assignments its role needs, atomically.

    teacher: subject + at least one class; inspector: subject; sg: cycle.
    """
    if role not in ROLES:
        raise ValidationError(f"role must be one of {', '.join(sorted(ROLES))}")
    if role in (TEACHER, INSPECTOR) and subject_id is None:
        raise ValidationError(f"a {role} needs a subject")
    if role == TEACHER and not class_ids:
        raise ValidationError("a teacher needs at least one class")
    if role == SG and cycle not in CYCLES:
        raise ValidationError(f"an sg needs a cycle among {', '.join(CYCLES)}")
    if hourly_rate < 0:
        raise ValidationError("hourly rate must be >= 0")

    with store.transaction():
        if subject_id is not None and store.curriculum.get_subject(subject_id) is None:
            raise NotFoundError("subject", subject_id)
        user = _add_user(
            store,
            password=password,
            username=username,
            role=role,
            first_name=first_name,
            last_name=last_name,
            email=email,
            hourly_rate=hourly_rate,
        )
        assignment: dict[str, Any] = {}
        if role == TEACHER:
            for class_id in dict.fromkeys(class_ids):
                if store.curriculum.get_class(class_id) is None:
                    raise NotFoundError("class", class_id)
                store.assignments.add_teacher(user.id, class_id, subject_id, academic_year)
            assignment = {"subjectId": subject_id, "classIds": list(dict.fromkeys(class_ids))}
        elif role == INSPECTOR:
            store.assignments.add_inspector(user.id, subject_id, academic_year)
            assignment = {"subjectId": subject_id}
        elif role == SG:
            store.assignments.add_sg(user.id, cycle, academic_year)
            assignment = {"cycle": cycle}

        audit(
            store,
            actor_id=actor_id,
            action="create_user",
            entity_type="user",
            entity_id=user.id,
            details={
                "username": user.username,
                "role": role,
                "academicYear": academic_year,
                **assignment,
            },
        )
    logger.info("Created user id=%d username=%s role=%s", user.id, user.username, role)
    return user


def update_user(
    store: Store, *, actor_id: int, user_id: int, changes: dict[str, Any]
) -> User:
    """Update profile fields. The role is fixed at creation and not accepted."""
    if "role" in changes:
        raise ValidationError("role cannot be changed")
    changes = dict(changes)
    password = changes.pop("password", None)
    if password:
        changes["password_hash"] = auth_service.hash_password(password)
    if changes.get("hourly_rate") is not None and changes["hourly_rate"] < 0:
        raise ValidationError("hourly rate must be >= 0")

    with store.transaction():
        get_user(store, user_id)
        try:
            user = store.users.update(user_id, **changes)
        except ValueError as e:
            raise ConflictError(str(e)) from None
        if user is None:
            raise NotFoundError("user", user_id)
        audit(
            store,
            actor_id=actor_id,
            action="update_user",
            entity_type="user",
            entity_id=user_id,
            details={
                **{k: v for k, v in changes.items() if k != "password_hash"},
                **({"passwordChanged": True} if password else {}),
            },
        )
    return user


def delete_user(store: Store, *, actor_id: int, user_id: int) -> User:
    """Delete a user and everything that belongs to them.

    Assignments, filed or reviewed reports, notifications and taught
    progressions go; progressions they validated keep their status but lose
    the validator. SG reports that survive lose their link to a deleted
    progression.
    """
    if actor_id == user_id:
        raise ValidationError("you cannot delete your own account")
    with store.transaction():
        user = get_user(store, user_id)
        taught = [p.id for p in store.progressions.list_for_teacher(user_id)]
        removed = {
            "assignments": store.assignments.delete_for_user(user_id),
            "reports": store.reports.delete_for_user(user_id),
            "reportsDetached": store.reports.detach_progressions(taught),
            "notifications": store.notifications.delete_for_user(user_id),
            "progressions": store.progressions.delete_for_teacher(user_id),
            "validationsCleared": store.progressions.clear_validator(user_id),
        }
        store.users.delete(user_id)
        audit(
            store,
            actor_id=actor_id,
            action="delete_user",
            entity_type="user",
            entity_id=user_id,
            details={"username": user.username, "role": user.role, **removed},
        )
    logger.info("Deleted user id=%d cascade=%s", user_id, removed)
    return user


def update_hourly_rate(
    store: Store, *, actor_id: int, teacher_id: int, hourly_rate: float
) -> User:
    if hourly_rate < 0:
        raise ValidationError("hourly rate must be >= 0")
    with store.transaction():
        teacher = get_user(store, teacher_id)
        if teacher.role != TEACHER:
            raise ValidationError("hourly rates only apply to teachers")
        user = store.users.update(teacher_id, hourly_rate=hourly_rate)
        if user is None:
            raise NotFoundError("user", teacher_id)
        audit(
            store,
            actor_id=actor_id,
            action="update_hourly_rate",
            entity_type="user",
            entity_id=teacher_id,
            details={"from": teacher.hourly_rate, "to": hourly_rate},
        )
    return user


def ensure_admin(store: Store, *, username: str, password: str) -> User | None:
    """Create the first admin account when the store has none.

    Returns the new user, or None when an admin already exists.
    """
    if store.users.list_by_role(ADMIN):
        return None
    with store.transaction():
        user = _add_user(
            store,
            password=password,
            username=username,
            role=ADMIN,
            first_name="System",
            last_name="Administrator",
        )
    logger.info("Seeded admin account id=%d username=%s", user.id, username)
    return user
