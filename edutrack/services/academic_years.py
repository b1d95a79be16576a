"""Academic year selection and administration.

Every scoped read and write resolves one academic year name first. The
order is: the caller's explicit ``academicYear``, else the year marked
active, else DEFAULT_ACADEMIC_YEAR, else the year containing today (a
school year starts in September).
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime

from edutrack.core.config import SETTINGS, is_academic_year_name
from edutrack.core.errors import ConflictError, NotFoundError, ValidationError
from edutrack.models.curriculum import AcademicYear
from edutrack.repos.store import Store

logger = logging.getLogger(__name__)

_SEPTEMBER = 9


def current_year_name(today: date) -> str:
    start = today.year if today.month >= _SEPTEMBER else today.year - 1
    return f"{start}-{start + 1}"


def year_bounds(name: str) -> tuple[date, date]:
    start = int(name.split("-")[0])
    return date(start, 9, 1), date(start + 1, 6, 30)


def resolve_year(store: Store, requested: str | None, today: date | None = None) -> str:
    if requested:
        if not is_academic_year_name(requested):
            raise ValidationError(f"invalid academic year {requested!r}")
        return requested
    active = store.curriculum.active_year()
    if active is not None:
        return active.name
    if SETTINGS.default_academic_year:
        return SETTINGS.default_academic_year
    return current_year_name(today or datetime.now(UTC).date())


def list_year_names(store: Store, today: date | None = None) -> list[str]:
    """Known years, newest first, always including the current one."""
    names = [y.name for y in store.curriculum.list_years()]
    current = current_year_name(today or datetime.now(UTC).date())
    if current not in names:
        names.append(current)
    return sorted(names, reverse=True)


def next_year_name(store: Store, today: date | None = None) -> str:
    latest = list_year_names(store, today)[0]
    start = int(latest.split("-")[0]) + 1
    return f"{start}-{start + 1}"


def create_year(
    store: Store,
    *,
    actor_id: int,
    name: str,
    copy_from: str | None = None,
    copy_classes: bool = False,
    copy_inspector_assignments: bool = False,
    copy_sg_assignments: bool = False,
) -> AcademicYear:
    """Create a year, optionally carrying structure over from another one.

    Copies are explicit: classes keep their name, level and equipment;
    inspector and SG assignments keep subject or cycle. Teacher assignments
    are never copied since classes get new ids.
    """
    if not is_academic_year_name(name):
        raise ValidationError(f"invalid academic year {name!r}")
    if store.curriculum.get_year_by_name(name) is not None:
        raise ConflictError(f"academic year {name} already exists")
    if copy_from is not None and not is_academic_year_name(copy_from):
        raise ValidationError(f"invalid academic year {copy_from!r}")

    start, end = year_bounds(name)
    with store.transaction():
        year = store.curriculum.add_year(name=name, start_date=start, end_date=end)
        copied: dict[str, int] = {}
        if copy_from is not None:
            if copy_classes:
                copied["classes"] = _copy_classes(store, copy_from, name)
            if copy_inspector_assignments:
                rows = store.assignments.inspector_assignments(academic_year=copy_from)
                for a in rows:
                    store.assignments.add_inspector(a.inspector_id, a.subject_id, name)
                copied["inspectorAssignments"] = len(rows)
            if copy_sg_assignments:
                rows = store.assignments.sg_assignments(academic_year=copy_from)
                for a in rows:
                    store.assignments.add_sg(a.sg_id, a.cycle, name)
                copied["sgAssignments"] = len(rows)
        store.notifications.add_audit(
            user_id=actor_id,
            action="create_academic_year",
            entity_type="academic_year",
            entity_id=year.id,
            details={"name": name, "copyFrom": copy_from, **copied},
            created_at=datetime.now(UTC),
        )
    logger.info("Academic year created  name=%s copied=%s", name, copied)
    return year


def _copy_classes(store: Store, source: str, target: str) -> int:
    classes = store.curriculum.list_classes(academic_year=source)
    for c in classes:
        store.curriculum.add_class(
            name=c.name,
            level_id=c.level_id,
            academic_year=target,
            floor=c.floor,
            capacity=c.capacity,
            interactive_board=c.interactive_board,
            whiteboard=c.whiteboard,
            projector=c.projector,
            camera=c.camera,
        )
    return len(classes)


def activate_year(store: Store, *, actor_id: int, name: str) -> AcademicYear:
    """Mark one year active; the previously active year becomes inactive.

    Activating a name that has no row yet creates it.
    """
    if not is_academic_year_name(name):
        raise ValidationError(f"invalid academic year {name!r}")
    with store.transaction():
        year = store.curriculum.get_year_by_name(name)
        if year is None:
            start, end = year_bounds(name)
            year = store.curriculum.add_year(name=name, start_date=start, end_date=end)
        if year.status == "archived":
            raise ValidationError(f"academic year {name} is archived")
        previous = store.curriculum.active_year()
        if previous is not None and previous.id != year.id:
            store.curriculum.update_year(previous.id, status="inactive")
        activated = store.curriculum.update_year(year.id, status="active")
        if activated is None:
            raise NotFoundError("academic year", year.id)
        store.notifications.add_audit(
            user_id=actor_id,
            action="set_academic_year",
            entity_type="academic_year",
            entity_id=year.id,
            details={"name": name, "previous": previous.name if previous else None},
            created_at=datetime.now(UTC),
        )
    logger.info("Academic year activated  name=%s", name)
    return activated
