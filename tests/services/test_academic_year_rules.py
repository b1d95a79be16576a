from __future__ import annotations

from dataclasses import replace
from datetime import date

import pytest

from edutrack.core.errors import ConflictError, ValidationError
from edutrack.repos.store import store
from edutrack.services import academic_years
from tests.conftest import NEXT_YEAR, YEAR


@pytest.mark.parametrize(
    ("today", "name"),
    [
        (date(2024, 8, 31), "2023-2024"),
        (date(2024, 9, 1), "2024-2025"),
        (date(2025, 1, 15), "2024-2025"),
        (date(2025, 6, 30), "2024-2025"),
    ],
)
def test_current_year_starts_in_september(today: date, name: str) -> None:
    assert academic_years.current_year_name(today) == name


def test_year_bounds() -> None:
    assert academic_years.year_bounds("2024-2025") == (date(2024, 9, 1), date(2025, 6, 30))


def test_resolve_prefers_explicit_then_active() -> None:
    assert academic_years.resolve_year(store, NEXT_YEAR) == NEXT_YEAR
    assert academic_years.resolve_year(store, None) == YEAR


def test_resolve_rejects_malformed_name() -> None:
    with pytest.raises(ValidationError):
        academic_years.resolve_year(store, "2024")


def test_resolve_falls_back_to_calendar(monkeypatch: pytest.MonkeyPatch) -> None:
    store.reset()
    monkeypatch.setattr(
        academic_years, "SETTINGS", replace(academic_years.SETTINGS, default_academic_year=None)
    )
    assert academic_years.resolve_year(store, None, today=date(2023, 10, 1)) == "2023-2024"


def test_resolve_uses_configured_default(monkeypatch: pytest.MonkeyPatch) -> None:
    store.reset()
    monkeypatch.setattr(
        academic_years,
        "SETTINGS",
        replace(academic_years.SETTINGS, default_academic_year="2022-2023"),
    )
    assert academic_years.resolve_year(store, None, today=date(2023, 10, 1)) == "2022-2023"


def test_year_names_include_current_and_sort_newest_first() -> None:
    names = academic_years.list_year_names(store, today=date(2026, 10, 1))
    assert names == ["2026-2027", YEAR]
    assert academic_years.next_year_name(store, today=date(2026, 10, 1)) == "2027-2028"


def test_create_year_rejects_duplicates_and_bad_names() -> None:
    with pytest.raises(ConflictError):
        academic_years.create_year(store, actor_id=1, name=YEAR)
    with pytest.raises(ValidationError):
        academic_years.create_year(store, actor_id=1, name="2025-2025")
    with pytest.raises(ValidationError):
        academic_years.create_year(store, actor_id=1, name=NEXT_YEAR, copy_from="last")
    assert store.curriculum.get_year_by_name(NEXT_YEAR) is None


def test_activate_creates_missing_year() -> None:
    year = academic_years.activate_year(store, actor_id=1, name=NEXT_YEAR)
    assert year.status == "active"
    assert store.curriculum.active_year().name == NEXT_YEAR
    assert store.curriculum.get_year_by_name(YEAR).status == "inactive"


def test_activate_same_year_twice_is_harmless() -> None:
    academic_years.activate_year(store, actor_id=1, name=YEAR)
    assert store.curriculum.active_year().name == YEAR
